"""Spherical geometry: great-circle distance, projection and polygon tests.

Coordinates passed in are (lat, lon) degrees; polygon rings are stored in
GeoJSON (lon, lat) order. Invalid input (NaN, out of range) propagates as NaN
instead of raising; callers validate at the ingestion boundary.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from initial_attack.models import Position, Ring

EARTH_RADIUS_KM = 6371.0

_MIN_BACKING_KM = 0.05


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great-circle distance in km between two points on Earth."""
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


distance_km = haversine


def destination_point(
    lat: float, lon: float, bearing_deg: float, distance_km: float
) -> tuple[float, float]:
    """Project a point ``distance_km`` along ``bearing_deg`` (clockwise from north).

    Standard forward geodesic on a sphere of radius 6371 km. Returns (lat, lon).
    """
    lat1 = math.radians(lat)
    lon1 = math.radians(lon)
    bearing = math.radians(bearing_deg)
    angular = distance_km / EARTH_RADIUS_KM

    lat2 = math.asin(
        math.sin(lat1) * math.cos(angular)
        + math.cos(lat1) * math.sin(angular) * math.cos(bearing)
    )
    lon2 = lon1 + math.atan2(
        math.sin(bearing) * math.sin(angular) * math.cos(lat1),
        math.cos(angular) - math.sin(lat1) * math.sin(lat2),
    )
    return math.degrees(lat2), math.degrees(lon2)


def points_on_arc(
    lat: float,
    lon: float,
    radius_km: float,
    start_deg: float,
    end_deg: float,
    n: int = 24,
) -> list[Position]:
    """Sample ``n + 1`` points along an arc centred at (lat, lon), as (lon, lat)."""
    step = (end_deg - start_deg) / n
    points: list[Position] = []
    for i in range(n + 1):
        p_lat, p_lon = destination_point(lat, lon, start_deg + step * i, radius_km)
        points.append((p_lon, p_lat))
    return points


def build_cone_polygon(
    lat: float,
    lon: float,
    wind_from_deg: float,
    length_km: float,
    width_km: float,
) -> tuple[Ring]:
    """Build a wind-driven teardrop polygon around an ignition point.

    The head reaches ``length_km`` downwind (wind direction + 180), the rear
    backs ``0.15 * length_km`` upwind, and the flanks reach ``width_km / 2``
    crosswind. Flank arcs run at 0.6 of the half-width near the rear and the
    head shoulders at 0.3 of the half-width. Returns a single closed outer ring.
    """
    spread_deg = (wind_from_deg + 180) % 360
    rear_deg = wind_from_deg % 360
    left_deg = (spread_deg - 90 + 360) % 360
    right_deg = (spread_deg + 90) % 360
    half_width = width_km / 2
    backing_km = max(length_km * 0.15, _MIN_BACKING_KM)

    head_lat, head_lon = destination_point(lat, lon, spread_deg, length_km)
    rear_lat, rear_lon = destination_point(lat, lon, rear_deg, backing_km)

    ring: list[Position] = [(rear_lon, rear_lat)]

    ring.extend(points_on_arc(lat, lon, half_width * 0.6, rear_deg, left_deg, 6))
    ml_lat, ml_lon = destination_point(lat, lon, left_deg, half_width)
    ring.append((ml_lon, ml_lat))
    hl_lat, hl_lon = destination_point(head_lat, head_lon, left_deg, half_width * 0.3)
    ring.append((hl_lon, hl_lat))

    ring.append((head_lon, head_lat))

    hr_lat, hr_lon = destination_point(head_lat, head_lon, right_deg, half_width * 0.3)
    ring.append((hr_lon, hr_lat))
    mr_lat, mr_lon = destination_point(lat, lon, right_deg, half_width)
    ring.append((mr_lon, mr_lat))
    ring.extend(points_on_arc(lat, lon, half_width * 0.6, right_deg, rear_deg, 6))

    ring.append(ring[0])
    return (tuple(ring),)


def point_in_polygon(lat: float, lon: float, polygon: Sequence[Sequence[Position]]) -> bool:
    """Ray-casting test against the outer ring. Holes are ignored."""
    ring = polygon[0]
    inside = False
    j = len(ring) - 1
    for i in range(len(ring)):
        xi, yi = ring[i][1], ring[i][0]
        xj, yj = ring[j][1], ring[j][0]
        if (yi > lon) != (yj > lon) and lat < (xj - xi) * (lon - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def min_dist_to_polygon(lat: float, lon: float, polygon: Sequence[Sequence[Position]]) -> float:
    """Approximate distance (km) from a point to a polygon: nearest outer-ring vertex.

    Not true edge distance. Good enough for the 1 km asset buffer heuristic
    because cone rings are densely sampled along the flanks.
    """
    return min(
        (haversine(lat, lon, vertex[1], vertex[0]) for vertex in polygon[0]),
        default=math.inf,
    )

"""Density clustering of FIRMS hotspots into fire events.

DBSCAN over haversine distance with ``MIN_POINTS = 1``: every detection is a
core point, so there is no noise class and an isolated hotspot becomes its
own singleton cluster. Keep it that way; the product requirement is to always
show something rather than only statistically confident clusters.
"""

from __future__ import annotations

import logging
from collections import Counter

import numpy as np
from sklearn.cluster import DBSCAN

from initial_attack.geo import EARTH_RADIUS_KM
from initial_attack.models import FireCluster, FirmsHotspot, FuelProxy, Incident, Perimeter, Resources

logger = logging.getLogger(__name__)

EPS_METERS = 1500.0
MIN_POINTS = 1
PIXEL_HALF_WIDTH_METERS = 375.0  # VIIRS I-band footprint
MIN_RADIUS_METERS = 100.0

_NOISE = -1  # sklearn label for points outside every cluster

DEFAULT_FIRMS_RESOURCES = Resources(
    engines_available=2,
    dozers_available=0,
    air_support_available=False,
    eta_minutes_engine=25,
    eta_minutes_air=60,
)


def _distance_matrix_m(lats: np.ndarray, lons: np.ndarray) -> np.ndarray:
    """Pairwise haversine distances in meters (brute force, n x n)."""
    phi = np.radians(lats)
    lam = np.radians(lons)
    dphi = phi[:, None] - phi[None, :]
    dlam = lam[:, None] - lam[None, :]
    a = np.sin(dphi / 2) ** 2 + np.cos(phi)[:, None] * np.cos(phi)[None, :] * np.sin(dlam / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    return EARTH_RADIUS_KM * 1000.0 * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def dbscan_labels(
    hotspots: list[FirmsHotspot] | tuple[FirmsHotspot, ...],
    eps_meters: float = EPS_METERS,
    min_points: int = MIN_POINTS,
) -> list[int]:
    """Assign a cluster label to every hotspot.

    Points that would be noise under classic DBSCAN are given their own
    labels after the density pass, so every label is >= 0.
    """
    if not hotspots:
        return []

    # sklearn's haversine metric takes [lat, lon] in radians
    coords = np.radians([[h.latitude, h.longitude] for h in hotspots])
    eps_rad = eps_meters / (EARTH_RADIUS_KM * 1000.0)
    labels = DBSCAN(eps=eps_rad, min_samples=min_points, metric="haversine").fit(coords).labels_

    next_label = int(labels.max()) + 1
    result: list[int] = []
    for label in labels:
        if label == _NOISE:
            label = next_label
            next_label += 1
        result.append(int(label))
    return result


def build_cluster(cluster_id: str, members: list[FirmsHotspot]) -> FireCluster:
    """Summarize member hotspots: mean centroid, intensity, extent, recency."""
    n = len(members)
    centroid_lat = sum(h.latitude for h in members) / n
    centroid_lon = sum(h.longitude for h in members) / n

    lats = np.array([centroid_lat] + [h.latitude for h in members], dtype=float)
    lons = np.array([centroid_lon] + [h.longitude for h in members], dtype=float)
    max_dist = float(_distance_matrix_m(lats, lons)[0, 1:].max())

    return FireCluster(
        id=cluster_id,
        centroid_lat=centroid_lat,
        centroid_lon=centroid_lon,
        point_count=n,
        max_frp=max(h.frp for h in members),
        max_brightness=max(h.brightness for h in members),
        total_frp=sum(h.frp for h in members),
        last_seen=max(h.acquired_at for h in members).isoformat(),
        radius_meters=round(max(max_dist, MIN_RADIUS_METERS) + PIXEL_HALF_WIDTH_METERS),
        hotspots=tuple(members),
    )


def cluster_hotspots(
    hotspots: list[FirmsHotspot] | tuple[FirmsHotspot, ...],
    eps_meters: float = EPS_METERS,
    min_points: int = MIN_POINTS,
) -> list[FireCluster]:
    """Cluster hotspots into fire events, most radiatively intense first."""
    if not hotspots:
        return []

    groups: dict[int, list[FirmsHotspot]] = {}
    for label, hotspot in zip(dbscan_labels(hotspots, eps_meters, min_points), hotspots, strict=True):
        groups.setdefault(label, []).append(hotspot)

    # Stable sort keeps label order for equal total FRP.
    ordered = sorted(groups.values(), key=lambda members: sum(h.frp for h in members), reverse=True)
    clusters = [build_cluster(f"firms_cluster_{idx}", members) for idx, members in enumerate(ordered)]

    logger.debug("%d hotspots -> %d clusters", len(hotspots), len(clusters))
    return clusters


def infer_fuel_from_latitude(lat: float, lon: float) -> FuelProxy:
    """Coarse California fuel proxy from location alone."""
    if lat < 35.5:
        return "chaparral"
    if lat < 38 and lon > -121:
        return "grass"
    return "mixed"


def cluster_name(cluster: FireCluster, index: int) -> str:
    """Human-readable label: dominant satellite, ordinal and centroid."""
    counts = Counter(h.satellite or "Unknown" for h in cluster.hotspots)
    dominant = counts.most_common(1)[0][0] if counts else "Satellite"
    lat_dir = "N" if cluster.centroid_lat >= 0 else "S"
    lon_dir = "E" if cluster.centroid_lon >= 0 else "W"
    return (
        f"{dominant} Detection {index + 1} "
        f"({abs(cluster.centroid_lat):.2f}{lat_dir}, {abs(cluster.centroid_lon):.2f}{lon_dir})"
    )


def cluster_to_incident(cluster: FireCluster, index: int) -> Incident:
    """Normalize a cluster into an Incident anchored at its centroid."""
    satellites = sorted({h.satellite for h in cluster.hotspots if h.satellite})
    notes = [
        f"{cluster.point_count} satellite detections",
        f"Max FRP: {cluster.max_frp:.1f} MW",
        f"Last seen: {cluster.last_seen}",
    ]
    if satellites:
        notes.append(f"Satellites: {', '.join(satellites)}")

    return Incident(
        id=cluster.id,
        name=cluster_name(cluster, index),
        lat=cluster.centroid_lat,
        lon=cluster.centroid_lon,
        start_time_iso=cluster.last_seen,
        perimeter=Perimeter(radius_meters=float(cluster.radius_meters)),
        fuel_proxy=infer_fuel_from_latitude(cluster.centroid_lat, cluster.centroid_lon),
        notes=" | ".join(notes),
    )

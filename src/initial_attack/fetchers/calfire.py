"""CAL FIRE incident registry fetcher."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any

from requests import RequestException, Session

from initial_attack.cache import TTLCache
from initial_attack.errors import UpstreamUnavailableError
from initial_attack.http import create_session
from initial_attack.models import FuelProxy, Incident, Perimeter

logger = logging.getLogger(__name__)

CALFIRE_LIST_URL = "https://incidents.fire.ca.gov/umbraco/api/IncidentApi/List"

SQUARE_METERS_PER_ACRE = 4046.86
MIN_RADIUS_METERS = 100

# Rough county groupings; real fuel models come from LANDFIRE.
CHAPARRAL_COUNTIES = (
    "los angeles",
    "ventura",
    "santa barbara",
    "san diego",
    "orange",
    "riverside",
    "san bernardino",
)
GRASS_COUNTIES = (
    "sacramento",
    "san joaquin",
    "stanislaus",
    "merced",
    "fresno",
    "kern",
    "tulare",
    "kings",
    "madera",
)


def infer_fuel_from_county(county: str) -> FuelProxy:
    county = county.lower()
    if any(c in county for c in CHAPARRAL_COUNTIES):
        return "chaparral"
    if any(c in county for c in GRASS_COUNTIES):
        return "grass"
    return "mixed"


def acres_to_radius_meters(acres: float | None) -> int:
    """Radius of a circle with the burned area, never below 100 m."""
    if not acres or acres <= 0:
        return MIN_RADIUS_METERS
    radius = round(math.sqrt(acres * SQUARE_METERS_PER_ACRE / math.pi))
    return max(radius, MIN_RADIUS_METERS)


def _start_time_iso(started: Any) -> str:
    parsed = None
    if isinstance(started, str) and started:
        try:
            parsed = datetime.fromisoformat(started.replace("Z", "+00:00"))
        except ValueError:
            logger.debug("Unparseable CAL FIRE start time %r", started)
    if parsed is None:
        parsed = datetime.now(timezone.utc)
    elif parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _as_float(value: Any) -> float | None:
    """Registry numbers arrive as numbers, numeric strings or junk."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def normalize_calfire_incident(raw: dict[str, Any]) -> Incident | None:
    """Map one registry record to an Incident.

    Records whose coordinates are missing, zero, unparseable or out of range
    give None.
    """
    lat = _as_float(raw.get("Latitude"))
    lon = _as_float(raw.get("Longitude"))
    if not lat or not lon:
        logger.debug("Skipping CAL FIRE record %s: no usable coordinates", raw.get("UniqueId"))
        return None
    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        logger.debug(
            "Skipping CAL FIRE record %s: coordinates out of range (%s, %s)",
            raw.get("UniqueId"),
            lat,
            lon,
        )
        return None

    acres = _as_float(raw.get("AcresBurned"))
    contained = _as_float(raw.get("PercentContained"))
    county = str(raw.get("County") or "")
    notes = [
        str(raw.get("Location") or ""),
        f"{acres:,.0f} acres" if acres else "",
        f"{contained:g}% contained" if contained is not None else "",
        f"{county} County" if county else "",
    ]
    return Incident(
        id=f"calfire_{raw.get('UniqueId')}",
        name=str(raw.get("Name") or "Unknown Fire"),
        lat=lat,
        lon=lon,
        start_time_iso=_start_time_iso(raw.get("Started")),
        perimeter=Perimeter(radius_meters=acres_to_radius_meters(acres)),
        fuel_proxy=infer_fuel_from_county(county),
        notes=" | ".join(n for n in notes if n),
    )


def fetch_calfire_incidents(
    inactive: bool = False,
    year: int | None = None,
    timeout: int = 30,
    session: Session | None = None,
    cache: TTLCache[list[dict[str, Any]]] | None = None,
) -> list[dict[str, Any]]:
    """Fetch raw registry records.

    Raises:
        UpstreamUnavailableError: the registry could not be reached or returned
            something other than a JSON list.
    """
    if session is None:
        session = create_session()

    params: dict[str, str] = {"inactive": str(inactive).lower()}
    if year:
        params["year"] = str(year)

    def download() -> list[dict[str, Any]]:
        try:
            resp = session.get(
                CALFIRE_LIST_URL,
                params=params,
                headers={"Accept": "application/json"},
                timeout=timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except (RequestException, ValueError) as exc:
            raise UpstreamUnavailableError("calfire", str(exc)) from exc
        if not isinstance(data, list):
            raise UpstreamUnavailableError("calfire", "expected a JSON list of incidents")
        return data

    if cache is None:
        return download()
    return cache.get_or_fetch(("calfire", year, inactive), download)


def get_calfire_incidents(
    inactive: bool = False,
    year: int | None = None,
    timeout: int = 30,
    session: Session | None = None,
    cache: TTLCache[list[dict[str, Any]]] | None = None,
) -> list[Incident]:
    """Registry incidents as Incidents, most recently updated first."""
    raw = fetch_calfire_incidents(inactive, year, timeout, session, cache)
    records = [r for r in raw if isinstance(r, dict)]
    ranked = sorted(records, key=lambda r: str(r.get("Updated") or ""), reverse=True)
    incidents = [inc for inc in map(normalize_calfire_incident, ranked) if inc is not None]
    logger.info("CAL FIRE: %d of %d incidents have coordinates", len(incidents), len(raw))
    return incidents

"""NASA FIRMS satellite hotspot fetcher.

Area API: https://firms.modaps.eosdis.nasa.gov/api/area/
One CSV per product; VIIRS products report brightness as ``bright_ti4`` and
MODIS as ``brightness``.
"""

from __future__ import annotations

import io
import logging

import pandas as pd
from requests import Session

from initial_attack.cache import TTLCache
from initial_attack.config import CALIFORNIA_BBOX
from initial_attack.errors import UpstreamUnavailableError
from initial_attack.http import create_session
from initial_attack.models import FirmsHotspot

logger = logging.getLogger(__name__)

FIRMS_AREA_CSV_URL = "https://firms.modaps.eosdis.nasa.gov/api/area/csv"

MIN_DAYS = 1
MAX_DAYS = 10


def clamp_days(days: int | None) -> int:
    return min(max(days or MIN_DAYS, MIN_DAYS), MAX_DAYS)


def _float(row: pd.Series, *columns: str) -> float:
    """First column that parses as a number, else 0.0."""
    for col in columns:
        value = pd.to_numeric(row.get(col, ""), errors="coerce")
        if pd.notna(value):
            return float(value)
    return 0.0


def _text(row: pd.Series, col: str) -> str:
    value = row.get(col, "")
    return "" if pd.isna(value) else str(value)


def parse_firms_csv(text: str) -> list[FirmsHotspot]:
    """Parse a FIRMS area CSV body. Rows with unparseable coordinates are skipped."""
    stripped = text.strip()
    if not stripped or stripped.startswith(("<!DOCTYPE", "<html")):
        return []

    df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
    if "latitude" not in df.columns or "longitude" not in df.columns:
        logger.warning("FIRMS CSV has no latitude/longitude columns")
        return []

    lats = pd.to_numeric(df["latitude"], errors="coerce")
    lons = pd.to_numeric(df["longitude"], errors="coerce")
    valid = df[lats.notna() & lons.notna()]
    skipped = len(df) - len(valid)
    if skipped:
        logger.debug("Skipped %d FIRMS rows without coordinates", skipped)

    hotspots: list[FirmsHotspot] = []
    for _, row in valid.iterrows():
        hotspots.append(
            FirmsHotspot(
                latitude=float(row["latitude"]),
                longitude=float(row["longitude"]),
                brightness=_float(row, "bright_ti4", "brightness"),
                frp=_float(row, "frp"),
                acq_date=_text(row, "acq_date"),
                acq_time=_text(row, "acq_time"),
                satellite=_text(row, "satellite"),
                instrument=_text(row, "instrument"),
                confidence=_text(row, "confidence"),
                scan=_float(row, "scan"),
                track=_float(row, "track"),
                bright_t31=_float(row, "bright_ti5", "bright_t31"),
                version=_text(row, "version"),
                daynight=_text(row, "daynight"),
            )
        )
    return hotspots


def fetch_firms_source(
    map_key: str,
    source: str,
    bbox: str = CALIFORNIA_BBOX,
    days: int = 1,
    timeout: int = 30,
    session: Session | None = None,
    cache: TTLCache[list[FirmsHotspot]] | None = None,
) -> list[FirmsHotspot]:
    """Fetch and parse one FIRMS product for an area."""
    if session is None:
        session = create_session()
    days = clamp_days(days)

    def download() -> list[FirmsHotspot]:
        resp = session.get(
            f"{FIRMS_AREA_CSV_URL}/{map_key}/{source}/{bbox}/{days}",
            timeout=timeout,
        )
        resp.raise_for_status()
        hotspots = parse_firms_csv(resp.text)
        logger.info("FIRMS %s: %d hotspots parsed", source, len(hotspots))
        return hotspots

    if cache is None:
        return download()
    return cache.get_or_fetch(("firms", source, bbox, days), download)


def fetch_firms_hotspots(
    map_key: str | None,
    sources: list[str] | tuple[str, ...] = ("VIIRS_SNPP_NRT",),
    bbox: str = CALIFORNIA_BBOX,
    days: int = 1,
    timeout: int = 30,
    session: Session | None = None,
    cache: TTLCache[list[FirmsHotspot]] | None = None,
) -> list[FirmsHotspot]:
    """Fetch hotspots from every source and merge them, newest detection first.

    A source that fails is logged and skipped; the others still merge.

    Raises:
        UpstreamUnavailableError: no map key is configured.
    """
    if not map_key:
        raise UpstreamUnavailableError("firms", "FIRMS map key is not configured")
    if session is None:
        session = create_session()

    merged: list[FirmsHotspot] = []
    for source in sources:
        try:
            merged.extend(
                fetch_firms_source(map_key, source, bbox, days, timeout, session, cache)
            )
        except Exception:
            logger.warning("FIRMS source %s failed", source, exc_info=True)

    merged.sort(key=lambda h: h.acquired_at, reverse=True)
    logger.info("FIRMS total across %d source(s): %d hotspots", len(sources), len(merged))
    return merged

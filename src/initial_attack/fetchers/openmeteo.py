"""Open-Meteo current weather fetcher. No API key required."""

from __future__ import annotations

import logging

from requests import RequestException, Session

from initial_attack.cache import TTLCache
from initial_attack.errors import UpstreamUnavailableError
from initial_attack.http import create_session
from initial_attack.models import Weather

logger = logging.getLogger(__name__)

OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"

CURRENT_FIELDS = (
    "wind_speed_10m",
    "wind_gusts_10m",
    "wind_direction_10m",
    "temperature_2m",
    "relative_humidity_2m",
)

# Used for any field the response leaves null.
FIELD_DEFAULTS: dict[str, float] = {
    "wind_speed_10m": 5.0,
    "wind_gusts_10m": 8.0,
    "wind_direction_10m": 245.0,
    "temperature_2m": 25.0,
    "relative_humidity_2m": 30.0,
}


def weather_from_current(current: dict) -> Weather:
    def value(name: str) -> float:
        v = current.get(name)
        return FIELD_DEFAULTS[name] if v is None else float(v)

    return Weather(
        wind_speed_mps=value("wind_speed_10m"),
        wind_gust_mps=value("wind_gusts_10m"),
        wind_dir_deg=value("wind_direction_10m"),
        temperature_c=value("temperature_2m"),
        humidity_pct=value("relative_humidity_2m"),
    )


def fetch_weather(
    lat: float,
    lon: float,
    timeout: int = 30,
    session: Session | None = None,
    cache: TTLCache[Weather] | None = None,
) -> Weather:
    """Current 10 m wind (m/s), 2 m temperature and humidity at a point.

    With a cache, a failed request falls back to the last value for the same
    point while it is inside the cache's stale window.

    Raises:
        UpstreamUnavailableError: the request failed and nothing is cached.
    """
    if session is None:
        session = create_session()

    params: dict[str, str | float] = {
        "latitude": lat,
        "longitude": lon,
        "current": ",".join(CURRENT_FIELDS),
        "wind_speed_unit": "ms",
    }

    def download() -> Weather:
        resp = session.get(OPEN_METEO_URL, params=params, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        current = data.get("current")
        return weather_from_current(current if isinstance(current, dict) else {})

    try:
        if cache is None:
            return download()
        return cache.get_or_fetch(("open-meteo", round(lat, 3), round(lon, 3)), download)
    except (RequestException, ValueError) as exc:
        logger.warning("Weather fetch failed for %.3f,%.3f", lat, lon, exc_info=True)
        raise UpstreamUnavailableError("open-meteo", str(exc)) from exc

"""Explainable wind-cone spread model.

Not a physical fire-behavior model. The rate is a product of bounded factors
so an incident commander can see exactly why it is what it is::

    rate = 0.6 km/h * (1 + wind_mps / 10) * humidity_factor * fuel_factor

The note strings in ``SpreadExplain.notes`` are read by the UI and by the
advisory grounding filter (it looks for "wind shift"), so their wording is
part of the output contract.
"""

from __future__ import annotations

from initial_attack.geo import build_cone_polygon
from initial_attack.models import (
    Incident,
    SpreadEnvelope,
    SpreadExplain,
    SpreadRate,
    SpreadResult,
    Weather,
    WindShift,
)

MODEL_NAME = "wind-cone-v1"
BASE_RATE_KMH = 0.6

FUEL_FACTORS: dict[str, float] = {
    "grass": 1.3,
    "chaparral": 1.2,
    "brush": 1.1,
    "mixed": 1.0,
}


def humidity_factor(humidity_pct: float) -> float:
    if humidity_pct < 20:
        return 1.4
    if humidity_pct < 30:
        return 1.2
    return 1.0


def compute_spread_rate(weather: Weather, fuel_proxy: str = "mixed") -> SpreadRate:
    """Compute the head-fire spread rate in km/h and its factors."""
    wind = 1 + weather.wind_speed_mps / 10
    humidity = humidity_factor(weather.humidity_pct)
    fuel = FUEL_FACTORS.get(fuel_proxy, 1.0)
    return SpreadRate(
        rate_kmh=BASE_RATE_KMH * wind * humidity * fuel,
        wind_factor=wind,
        humidity_factor=humidity,
        fuel_factor=fuel,
    )


def shift_applies(t_hours: int, wind_shift: WindShift | None) -> bool:
    """True when the envelope ending at ``t_hours`` uses the post-shift direction.

    Any horizon whose end lies after an enabled shift takes the new direction
    for the whole envelope; there is no partial-horizon blending.
    """
    return wind_shift is not None and wind_shift.enabled and wind_shift.at_minutes < t_hours * 60


def compute_spread_envelopes(
    incident: Incident,
    weather: Weather,
    horizon_hours: int = 3,
    wind_shift: WindShift | None = None,
) -> SpreadResult:
    """Project one cone envelope per whole hour from 1 to ``horizon_hours``."""
    rate = compute_spread_rate(weather, incident.fuel_proxy)

    notes: list[str] = [
        f"Base rate: {BASE_RATE_KMH} km/h",
        f"Wind factor: {rate.wind_factor:.2f} ({weather.wind_speed_mps:g} m/s)",
        f"Humidity factor: {rate.humidity_factor:.1f} ({weather.humidity_pct:g}%)",
    ]
    if rate.fuel_factor != 1.0:
        notes.append(f"Fuel factor: {rate.fuel_factor:.1f} ({incident.fuel_proxy})")
    notes.append(f"Effective spread rate: {rate.rate_kmh:.2f} km/h")

    envelopes: list[SpreadEnvelope] = []
    shift_noted = False
    for t in range(1, horizon_hours + 1):
        wind_dir = weather.wind_dir_deg
        if shift_applies(t, wind_shift):
            wind_dir = wind_shift.new_dir_deg
            if not shift_noted:
                notes.append(
                    f"Wind shift at +{wind_shift.at_minutes:g}m: "
                    f"{weather.wind_dir_deg:g} deg -> {wind_shift.new_dir_deg:g} deg"
                )
                shift_noted = True

        length = rate.rate_kmh * t
        width = 0.5 * length
        envelopes.append(
            SpreadEnvelope(
                t_hours=t,
                polygon=build_cone_polygon(incident.lat, incident.lon, wind_dir, length, width),
            )
        )

    if wind_shift is not None and wind_shift.enabled:
        notes.append(f"Direction follows wind, shifts at +{wind_shift.at_minutes:g}m")
    notes.append("Rate increases with low humidity")

    return SpreadResult(
        envelopes=tuple(envelopes),
        explain=SpreadExplain(
            model=MODEL_NAME,
            rate_kmh=rate.rate_kmh,
            wind_factor=rate.wind_factor,
            humidity_factor=rate.humidity_factor,
            notes=tuple(notes),
        ),
    )

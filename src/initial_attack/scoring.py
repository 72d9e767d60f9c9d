"""Escalation risk scoring.

Three component severities on 0-100, weighted 35% wind, 35% humidity and
30% time-to-impact. The total is computed from the unrounded components and
rounded once; the breakdown is rounded for display.
"""

from __future__ import annotations

import math

from initial_attack.models import RiskBreakdown, RiskLabel, RiskScore, Weather

WIND_WEIGHT = 0.35
HUMIDITY_WEIGHT = 0.35
TIME_TO_IMPACT_WEIGHT = 0.30

# Lower bounds on total, checked in order
LABEL_THRESHOLDS: tuple[tuple[int, RiskLabel], ...] = (
    (75, "extreme"),
    (50, "high"),
    (30, "moderate"),
)

_BASELINE_TTI_SEVERITY = 10.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up, unlike ``round()``."""
    return math.floor(value + 0.5)


def wind_severity(wind_speed_mps: float) -> float:
    """0 at calm, 100 at 20 m/s and above."""
    return min(100.0, wind_speed_mps / 20 * 100)


def humidity_severity(humidity_pct: float) -> float:
    """100 at 0% relative humidity, 0 at 60% and above."""
    return max(0.0, min(100.0, (60 - humidity_pct) / 60 * 100))


def time_to_impact_severity(minutes: float | None) -> float:
    """100 within 30 minutes, falling linearly to 10 at 180 minutes.

    No impact (``None``) or anything beyond 3 hours keeps a baseline of 10:
    background risk persists without an imminent asset threat.
    """
    if minutes is None or minutes > 180:
        return _BASELINE_TTI_SEVERITY
    if minutes <= 30:
        return 100.0
    return 100 - (minutes - 30) / 150 * 90


def risk_label(total: int) -> RiskLabel:
    for threshold, label in LABEL_THRESHOLDS:
        if total >= threshold:
            return label
    return "low"


def compute_risk_score(weather: Weather, time_to_impact_minutes: float | None) -> RiskScore:
    """Score escalation risk from weather and minutes until the nearest asset is reached."""
    wind = wind_severity(weather.wind_speed_mps)
    humidity = humidity_severity(weather.humidity_pct)
    tti = time_to_impact_severity(time_to_impact_minutes)

    total = round_half_up(
        WIND_WEIGHT * wind + HUMIDITY_WEIGHT * humidity + TIME_TO_IMPACT_WEIGHT * tti
    )
    total = max(0, min(100, total))

    return RiskScore(
        total=total,
        breakdown=RiskBreakdown(
            wind_severity=round_half_up(wind),
            humidity_severity=round_half_up(humidity),
            time_to_impact_severity=round_half_up(tti),
        ),
        label=risk_label(total),
    )

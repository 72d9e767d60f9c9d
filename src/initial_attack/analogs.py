"""Historical analog matching.

Scores archived incidents against current conditions on four axes (fuel 30,
wind 25, humidity 25, region 20). The results feed the advisory context and
the "similar incidents" display only; the recommendation engine never reads
them.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from initial_attack.data.historical_incidents import HISTORICAL_INCIDENTS
from initial_attack.models import HistoricalIncident, Incident, Weather

logger = logging.getLogger(__name__)

MIN_SIMILARITY = 40
MAX_MATCHES = 5
DEFAULT_REGION = "California"

FUEL_COMPATIBILITY: dict[str, tuple[str, ...]] = {
    "grass": ("grass", "mixed"),
    "brush": ("brush", "chaparral", "mixed"),
    "mixed": ("mixed", "grass", "brush"),
    "chaparral": ("chaparral", "brush"),
}

# (max absolute difference, points), checked in order
_WIND_TIERS: tuple[tuple[float, int], ...] = ((2, 25), (5, 15), (10, 5))
_HUMIDITY_TIERS: tuple[tuple[float, int], ...] = ((5, 25), (10, 15), (20, 5))


@dataclass(frozen=True)
class ScoredIncident:
    incident: HistoricalIncident
    score: int


@dataclass(frozen=True)
class HistoricalStatistics:
    escaped_pct: float
    contained_pct: float
    avg_containment_hours: float
    air_support_pct: float


def _tiered(diff: float, tiers: tuple[tuple[float, int], ...]) -> int:
    for limit, points in tiers:
        if diff <= limit:
            return points
    return 0


def similarity_score(
    incident: Incident,
    weather: Weather,
    historical: HistoricalIncident,
    region: str = DEFAULT_REGION,
) -> int:
    """Similarity on 0-100 between the current situation and one archived fire."""
    score = 0
    if incident.fuel_proxy == historical.fuel:
        score += 30
    elif historical.fuel in FUEL_COMPATIBILITY.get(incident.fuel_proxy, ()):
        score += 15

    score += _tiered(abs(weather.wind_speed_mps - historical.wind_speed_mps), _WIND_TIERS)
    score += _tiered(abs(weather.humidity_pct - historical.humidity_pct), _HUMIDITY_TIERS)

    if region and region in historical.location:
        score += 20
    return score


def find_similar_incidents(
    incident: Incident,
    weather: Weather,
    archive: Sequence[HistoricalIncident] | None = None,
    region: str = DEFAULT_REGION,
) -> list[ScoredIncident]:
    """Top five archived fires scoring at least 40, best first."""
    if archive is None:
        archive = HISTORICAL_INCIDENTS
    if not archive:
        logger.warning("No historical incidents available for analog matching")
        return []

    scored = [ScoredIncident(h, similarity_score(incident, weather, h, region)) for h in archive]
    matches = [s for s in scored if s.score >= MIN_SIMILARITY]
    matches.sort(key=lambda s: s.score, reverse=True)
    return matches[:MAX_MATCHES]


def calculate_historical_statistics(similar: Sequence[HistoricalIncident]) -> HistoricalStatistics:
    if not similar:
        return HistoricalStatistics(0.0, 0.0, 0.0, 0.0)

    n = len(similar)
    contained = [h for h in similar if h.outcome == "contained"]
    escaped = sum(1 for h in similar if h.outcome == "escaped")
    with_air = sum(1 for h in similar if h.air_support)
    avg_hours = (
        sum(h.containment_time_hours for h in contained) / len(contained) if contained else 0.0
    )
    return HistoricalStatistics(
        escaped_pct=escaped / n * 100,
        contained_pct=len(contained) / n * 100,
        avg_containment_hours=avg_hours,
        air_support_pct=with_air / n * 100,
    )


def historical_summary(similar: Sequence[HistoricalIncident]) -> list[str]:
    """Short display lines describing how similar fires turned out."""
    if not similar:
        return ["No similar historical incidents found for comparison"]

    stats = calculate_historical_statistics(similar)
    plural = "s" if len(similar) > 1 else ""
    lines = [f"Found {len(similar)} similar incident{plural} for comparison"]
    if stats.escaped_pct > 0:
        lines.append(f"{stats.escaped_pct:.0f}% of similar fires escaped initial attack")
    if stats.contained_pct > 0:
        lines.append(
            f"{stats.contained_pct:.0f}% contained (avg {stats.avg_containment_hours:.1f} hours)"
        )
    if stats.air_support_pct > 50:
        lines.append(f"{stats.air_support_pct:.0f}% required air support")
    return lines

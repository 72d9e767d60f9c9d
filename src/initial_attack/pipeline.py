"""Pipeline orchestrator: spread -> recommendations -> analogs, live incident loading and advisory grounding."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from requests import Session

from initial_attack.advisory import (
    AdvisoryContext,
    GroundedInsights,
    InsightParseError,
    ParsedInsights,
    build_advisory_context,
    enforce_grounding,
    parse_insights,
)
from initial_attack.analogs import ScoredIncident, find_similar_incidents
from initial_attack.cache import TTLCache
from initial_attack.cluster import cluster_hotspots, cluster_to_incident
from initial_attack.config import InitialAttackConfig
from initial_attack.errors import UpstreamUnavailableError
from initial_attack.fetchers.calfire import get_calfire_incidents
from initial_attack.fetchers.firms import fetch_firms_hotspots
from initial_attack.fetchers.openmeteo import fetch_weather
from initial_attack.http import session_from_config
from initial_attack.models import (
    Asset,
    HistoricalIncident,
    Incident,
    RecommendationsResult,
    Resources,
    Scenario,
    SpreadResult,
    Weather,
    WindShift,
)
from initial_attack.recommendations import generate_recommendations
from initial_attack.spread import compute_spread_envelopes

logger = logging.getLogger(__name__)

# Extra seconds a value may be served after its TTL when a refresh fails.
FIRMS_STALE_SECONDS = 600
REGISTRY_STALE_SECONDS = 600
WEATHER_STALE_SECONDS = 3600


@dataclass(frozen=True)
class Assessment:
    """One full decision cycle for one incident."""

    incident: Incident
    weather: Weather
    resources: Resources
    assets: tuple[Asset, ...]
    spread: SpreadResult
    recommendations: RecommendationsResult
    similar: tuple[ScoredIncident, ...] = ()
    wind_shift: WindShift | None = None
    generated_at: str = field(
        default_factory=lambda: datetime.now(tz=timezone.utc).isoformat()
    )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def run_assessment(
    incident: Incident,
    weather: Weather,
    resources: Resources,
    assets: Sequence[Asset],
    wind_shift: WindShift | None = None,
    horizon_hours: int = 3,
    archive: Sequence[HistoricalIncident] | None = None,
) -> Assessment:
    """Execute one assessment cycle.

    Steps:
    1. Project spread envelopes for each hour of the horizon
    2. Match assets, score risk, build the three action cards and the brief
    3. Look up historical analogs (display context only)
    """
    spread = compute_spread_envelopes(incident, weather, horizon_hours, wind_shift)
    logger.info(
        "%s: spread %.2f km/h over %d envelope(s)",
        incident.id,
        spread.explain.rate_kmh,
        len(spread.envelopes),
    )

    recommendations = generate_recommendations(
        incident,
        weather,
        spread.envelopes,
        assets,
        resources,
        spread.explain.rate_kmh,
        wind_shift,
    )
    logger.info(
        "%s: risk %d (%s), %d asset(s) at risk",
        incident.id,
        recommendations.risk_score.total,
        recommendations.risk_score.label,
        len(recommendations.assets_at_risk),
    )

    similar = find_similar_incidents(incident, weather, archive)
    return Assessment(
        incident=incident,
        weather=weather,
        resources=resources,
        assets=tuple(assets),
        spread=spread,
        recommendations=recommendations,
        similar=tuple(similar),
        wind_shift=wind_shift,
    )


def assess_scenario(
    scenario: Scenario,
    weather: Weather,
    wind_shift: WindShift | None = None,
    horizon_hours: int = 3,
) -> Assessment:
    """Assess a built-in scenario. Without an explicit shift its default shift applies."""
    return run_assessment(
        scenario.incident,
        weather,
        scenario.resources,
        scenario.assets,
        wind_shift if wind_shift is not None else scenario.default_wind_shift,
        horizon_hours,
    )


def advisory_context(assessment: Assessment) -> AdvisoryContext:
    """The situation handed to the advisory layer for one assessment."""
    return build_advisory_context(
        assessment.incident,
        assessment.weather,
        assessment.recommendations,
        assessment.spread.explain.rate_kmh,
        assessment.similar,
        assessment.wind_shift,
    )


def ground_advisory_output(
    assessment: Assessment, text: str
) -> tuple[ParsedInsights | InsightParseError, GroundedInsights | None]:
    """Parse advisory output and keep only what the assessment supports.

    A parse failure is logged and returned with no grounded insights; the
    assessment itself is unaffected.
    """
    parsed = parse_insights(text)
    if isinstance(parsed, InsightParseError):
        logger.warning("Advisory output rejected for %s: %s", assessment.incident.id, parsed.reason)
        return parsed, None
    grounded = enforce_grounding(
        parsed.insights, advisory_context(assessment), assessment.spread.explain
    )
    return parsed, grounded


@dataclass
class LiveCaches:
    """One cache per upstream source, shared across assessment cycles."""

    firms: TTLCache[Any]
    registry: TTLCache[Any]
    weather: TTLCache[Weather]

    @classmethod
    def from_config(cls, config: InitialAttackConfig) -> LiveCaches:
        return cls(
            firms=TTLCache(config.firms_cache_ttl, FIRMS_STALE_SECONDS),
            registry=TTLCache(config.registry_cache_ttl, REGISTRY_STALE_SECONDS),
            weather=TTLCache(config.weather_cache_ttl, WEATHER_STALE_SECONDS),
        )


def load_live_incidents(
    config: InitialAttackConfig,
    session: Session | None = None,
    caches: LiveCaches | None = None,
) -> list[Incident]:
    """Registry incidents followed by the most intense FIRMS clusters.

    Each source that fails is logged and contributes nothing; the result may
    be empty but is always a list.
    """
    if session is None:
        session = session_from_config(config)
    if caches is None:
        caches = LiveCaches.from_config(config)

    incidents: list[Incident] = []
    try:
        incidents.extend(
            get_calfire_incidents(
                timeout=config.request_timeout, session=session, cache=caches.registry
            )
        )
    except UpstreamUnavailableError:
        logger.warning("CAL FIRE registry unavailable", exc_info=True)

    try:
        hotspots = fetch_firms_hotspots(
            config.firms_map_key,
            sources=config.firms_sources,
            bbox=config.firms_bbox,
            days=config.firms_days,
            timeout=config.request_timeout,
            session=session,
            cache=caches.firms,
        )
    except UpstreamUnavailableError as exc:
        logger.warning("Skipping FIRMS hotspots: %s", exc)
        hotspots = []

    clusters = cluster_hotspots(hotspots, eps_meters=config.cluster_eps_meters)
    incidents.extend(
        cluster_to_incident(c, i) for i, c in enumerate(clusters[: config.max_live_incidents])
    )
    logger.info("Loaded %d live incident(s)", len(incidents))
    return incidents


def load_live_weather(
    incident: Incident,
    config: InitialAttackConfig,
    session: Session | None = None,
    caches: LiveCaches | None = None,
) -> Weather | None:
    """Current weather at the incident, or None when the provider is unavailable."""
    try:
        return fetch_weather(
            incident.lat,
            incident.lon,
            timeout=config.request_timeout,
            session=session,
            cache=caches.weather if caches is not None else None,
        )
    except UpstreamUnavailableError:
        logger.warning("No weather for %s", incident.id)
        return None

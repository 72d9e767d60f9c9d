"""Rule-based action cards for the first hours of initial attack.

Every cycle produces exactly three cards (evacuation, resources, tactics), a
one-line brief with key triggers, and the risk score that drove them. The
rules are decision tables evaluated once per cycle; nothing here performs I/O
or depends on the advisory layer.
"""

from __future__ import annotations

from collections.abc import Sequence

from initial_attack.geo import haversine, min_dist_to_polygon, point_in_polygon
from initial_attack.models import (
    ActionCard,
    Asset,
    AssetAtRisk,
    Brief,
    Confidence,
    Incident,
    RecommendationsResult,
    Resources,
    SpreadEnvelope,
    Weather,
    WindShift,
)
from initial_attack.scoring import compute_risk_score, round_half_up

ASSET_BUFFER_KM = 1.0
ENGINE_COVERAGE_KM = 0.3  # line one engine can hold in the first hour
MIN_RESOURCE_WHY = 3

_MIN_RATE_KMH = 1e-3
_REEVALUATE = "Re-evaluate in 30 minutes"


def _wind_shift_enabled(wind_shift: WindShift | None) -> bool:
    return wind_shift is not None and wind_shift.enabled


def find_assets_at_risk(
    assets: Sequence[Asset],
    envelopes: Sequence[SpreadEnvelope],
    buffer_km: float = ASSET_BUFFER_KM,
) -> list[AssetAtRisk]:
    """Match each asset to the soonest envelope that contains it or comes within the buffer.

    Envelopes are checked in ascending hour order and an asset is attributed
    once. Results are sorted closest first.
    """
    ordered = sorted(envelopes, key=lambda e: e.t_hours)
    at_risk: list[AssetAtRisk] = []
    for asset in assets:
        for env in ordered:
            dist = min_dist_to_polygon(asset.lat, asset.lon, env.polygon)
            if point_in_polygon(asset.lat, asset.lon, env.polygon) or dist < buffer_km:
                at_risk.append(AssetAtRisk(asset=asset, within_envelope_hour=env.t_hours, dist_km=dist))
                break
    at_risk.sort(key=lambda a: a.dist_km)
    return at_risk


def estimate_time_to_impact(incident: Incident, asset: Asset, spread_rate_kmh: float) -> int:
    """Minutes for the head to cover the straight-line distance to ``asset``."""
    dist = haversine(incident.lat, incident.lon, asset.lat, asset.lon)
    return round_half_up(dist / max(spread_rate_kmh, _MIN_RATE_KMH) * 60)


def generate_evacuation_card(
    incident: Incident,
    weather: Weather,
    assets_at_risk: Sequence[AssetAtRisk],
    spread_rate_kmh: float,
    wind_shift: WindShift | None = None,
) -> ActionCard:
    why: list[str] = []
    actions: list[str] = []

    if not assets_at_risk:
        return ActionCard(
            type="evacuation",
            title="Monitor Communities: No Immediate Evacuation Needed",
            timing=_REEVALUATE,
            confidence="medium",
            why=(
                "No communities currently within 3h spread envelope + 1km buffer",
                "Conditions may change with wind or humidity shifts",
                "Continue monitoring asset proximity",
            ),
            actions=(
                "Set trigger alerts for asset intersection",
                "Pre-stage evacuation messaging",
            ),
        )

    nearest = assets_at_risk[0]
    name = nearest.asset.name
    minutes = estimate_time_to_impact(incident, nearest.asset, spread_rate_kmh)

    confidence: Confidence
    if nearest.within_envelope_hour <= 2:
        confidence = "high"
        title = f"Issue Evacuation Warning for {name}"
        timing = f"Likely impact in ~{minutes} minutes"
    else:
        confidence = "medium"
        title = f"Prepare Evacuation Advisory for {name}"
        timing = f"Potential impact in ~{minutes} minutes"

    relation = "intersects" if nearest.dist_km < ASSET_BUFFER_KM else "approaches"
    why.append(f"{nearest.within_envelope_hour}h envelope {relation} {name}")

    if _wind_shift_enabled(wind_shift):
        why.append(f"Wind shift at +{wind_shift.at_minutes:g}m points spread toward {name}")

    if weather.humidity_pct < 20:
        why.append("Humidity < 20% increases spread risk")
    elif weather.humidity_pct < 30:
        why.append("Humidity < 30% moderately increases spread")

    actions.append("Open evacuation warning template")
    actions.append("Notify law enforcement liaison")
    if len(assets_at_risk) > 1:
        others = ", ".join(a.asset.name for a in assets_at_risk[1:])
        actions.append(f"Also monitor: {others}")

    return ActionCard(
        type="evacuation",
        title=title,
        timing=timing,
        confidence=confidence,
        why=tuple(why),
        actions=tuple(actions),
    )


def generate_resources_card(
    resources: Resources,
    risk_total: int,
    spread_rate_kmh: float,
) -> ActionCard:
    """Escalate resource requests by risk; always carries at least three why bullets."""
    why: list[str] = []
    actions: list[str] = []
    confidence: Confidence = "medium"
    title = "Current Resources Sufficient: Monitor Conditions"
    timing = _REEVALUATE

    flank_length_1h = spread_rate_kmh * 0.5
    engine_coverage = resources.engines_available * ENGINE_COVERAGE_KM
    flank_exceeds_coverage = flank_length_1h > engine_coverage
    needs_air = resources.air_support_available and (risk_total > 50 or flank_exceeds_coverage)

    if risk_total > 60:
        confidence = "high"
        title = "Request Additional Resources Immediately"
        timing = "Within next 30 minutes"
        why.append(f"Escape risk score {risk_total}/100, high due to wind + low humidity")
    elif risk_total > 40:
        confidence = "high"
        title = "Request Air Support Within 1 Hour"
        timing = f"Air ETA ~{resources.eta_minutes_air:g} minutes"
        why.append(f"Risk score {risk_total}/100 warrants additional support")

    if flank_exceeds_coverage:
        why.append(
            f"1h flank length (~{flank_length_1h:.1f}km) exceeds engine coverage "
            f"(~{engine_coverage:.1f}km)"
        )

    if needs_air:
        why.append("Air attack historically reduces escape in similar conditions")
        actions.append("Request tanker/helicopter")
        actions.append(f"Stage at nearest waypoint (ETA ~{resources.eta_minutes_air:g}m)")

    if resources.engines_available > 0:
        actions.append(
            f"Deploy {resources.engines_available} engines (ETA ~{resources.eta_minutes_engine:g}m)"
        )
    if resources.dozers_available > 0:
        actions.append(f"Assign {resources.dozers_available} dozer(s) to line construction")
    if not actions:
        actions.append("Request initial attack engines from nearest station")

    padding = (
        f"Engines ETA {resources.eta_minutes_engine:g}m: verify staging positions",
        f"Air support ETA {resources.eta_minutes_air:g}m: confirm availability with dispatch",
        "Re-check resource status at next briefing cycle",
    )
    for line in padding:
        if len(why) >= MIN_RESOURCE_WHY:
            break
        why.append(line)

    return ActionCard(
        type="resources",
        title=title,
        timing=timing,
        confidence=confidence,
        why=tuple(why),
        actions=tuple(actions),
    )


def generate_tactics_card(
    weather: Weather,
    resources: Resources,
    wind_shift: WindShift | None = None,
) -> ActionCard:
    """Flank-anchoring guidance. Confidence is always medium for tactics."""
    spread_dir = (weather.wind_dir_deg + 180) % 360
    right_flank = (spread_dir + 90) % 360

    why: list[str] = [
        f"Wind from {weather.wind_dir_deg:g}° pushes head toward {spread_dir:g}°; flank is containable"
    ]
    actions: list[str] = []

    if resources.dozers_available > 0:
        why.append("Dozer available: use for line reinforcement on anchor")
        actions.append("Assign dozer to anchor segment")
    else:
        why.append("No dozers: rely on engine crews for hand line")
        actions.append("Deploy engine crews for hand line construction")

    if _wind_shift_enabled(wind_shift):
        why.append(f"Set trigger points: wind direction change > 30° at +{wind_shift.at_minutes:g}m")
        actions.append("Set trigger points for wind shift")
    else:
        why.append("Monitor for unexpected wind changes: set safety zones")
        actions.append("Establish lookout and safety zones")

    actions.append("Maintain escape routes for all personnel")

    return ActionCard(
        type="tactics",
        title=f"Anchor and Hold {'Right' if right_flank < 180 else 'Left'} Flank",
        timing="Execute in next 30 minutes",
        confidence="medium",
        why=tuple(why),
        actions=tuple(actions),
    )


def build_brief(
    weather: Weather,
    assets_at_risk: Sequence[AssetAtRisk],
    wind_shift: WindShift | None = None,
) -> Brief:
    triggers: list[str] = []
    if _wind_shift_enabled(wind_shift):
        triggers.append(f"Wind direction change > 30° at +{wind_shift.at_minutes:g}m")
    if weather.humidity_pct < 20:
        triggers.append("Humidity < 20%")
    if assets_at_risk:
        triggers.append("Envelope intersects asset buffer")
    triggers.append("Spread rate exceeds 1.0 km/h")

    if assets_at_risk:
        wind = "Strong wind" if weather.wind_speed_mps > 8 else "Wind"
        humidity = "very low" if weather.humidity_pct < 20 else "low"
        names = ", ".join(a.asset.name for a in assets_at_risk)
        one_liner = f"{wind} + {humidity} humidity raises escape risk; protect {names} within 0-3h window."
    else:
        one_liner = (
            f"Active fire with {weather.wind_speed_mps:.1f} m/s wind. "
            "Monitor spread and maintain containment posture."
        )
    return Brief(one_liner=one_liner, key_triggers=tuple(triggers))


def generate_recommendations(
    incident: Incident,
    weather: Weather,
    envelopes: Sequence[SpreadEnvelope],
    assets: Sequence[Asset],
    resources: Resources,
    spread_rate_kmh: float,
    wind_shift: WindShift | None = None,
) -> RecommendationsResult:
    """Derive the three action cards, the brief and the risk score for one cycle."""
    at_risk = find_assets_at_risk(assets, envelopes)
    minutes = (
        estimate_time_to_impact(incident, at_risk[0].asset, spread_rate_kmh) if at_risk else None
    )
    risk = compute_risk_score(weather, minutes)

    cards = (
        generate_evacuation_card(incident, weather, at_risk, spread_rate_kmh, wind_shift),
        generate_resources_card(resources, risk.total, spread_rate_kmh),
        generate_tactics_card(weather, resources, wind_shift),
    )
    return RecommendationsResult(
        cards=cards,
        brief=build_brief(weather, at_risk, wind_shift),
        risk_score=risk,
        assets_at_risk=tuple(at_risk),
    )

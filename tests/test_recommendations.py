"""Tests for the recommendation engine."""

from dataclasses import replace

import pytest

from initial_attack.models import AssetAtRisk, Resources, WindShift
from initial_attack.recommendations import (
    MIN_RESOURCE_WHY,
    build_brief,
    estimate_time_to_impact,
    find_assets_at_risk,
    generate_evacuation_card,
    generate_recommendations,
    generate_resources_card,
    generate_tactics_card,
)
from initial_attack.spread import compute_spread_envelopes


@pytest.fixture
def spread(incident, weather, wind_shift):
    return compute_spread_envelopes(incident, weather, 3, wind_shift)


@pytest.fixture
def recs(incident, weather, spread, community, resources, wind_shift):
    return generate_recommendations(
        incident,
        weather,
        spread.envelopes,
        [community],
        resources,
        spread.explain.rate_kmh,
        wind_shift,
    )


class TestGenerateRecommendations:
    def test_three_cards_in_order(self, recs):
        assert [c.type for c in recs.cards] == ["evacuation", "resources", "tactics"]

    def test_cards_well_formed(self, recs):
        for card in recs.cards:
            assert card.why
            assert card.actions
            assert card.confidence in ("high", "medium", "low")

    def test_resources_why_padding(self, recs):
        assert len(recs.cards[1].why) >= MIN_RESOURCE_WHY

    def test_wind_shift_in_key_triggers(self, recs):
        assert any("wind" in t.lower() for t in recs.brief.key_triggers)
        assert recs.brief.key_triggers[0] == "Wind direction change > 30° at +90m"

    def test_community_at_risk(self, recs):
        assert [a.asset.name for a in recs.assets_at_risk] == ["Riverside Creek Community"]
        evac = recs.cards[0]
        assert evac.title == "Issue Evacuation Warning for Riverside Creek Community"
        assert evac.confidence == "high"

    def test_risk_matches_time_to_impact(self, recs, incident, community, spread, weather):
        minutes = estimate_time_to_impact(incident, community, spread.explain.rate_kmh)
        assert 55 <= minutes <= 70
        assert recs.risk_score.total > 60
        assert recs.cards[1].title == "Request Additional Resources Immediately"

    def test_no_assets(self, incident, weather, spread, resources):
        result = generate_recommendations(
            incident, weather, spread.envelopes, [], resources, spread.explain.rate_kmh
        )
        assert result.cards[0].title == "Monitor Communities: No Immediate Evacuation Needed"
        assert result.cards[0].confidence == "medium"
        assert result.risk_score.breakdown.time_to_impact_severity == 10
        assert "Envelope intersects asset buffer" not in result.brief.key_triggers

    def test_deterministic(self, incident, weather, spread, community, resources, wind_shift):
        args = (incident, weather, spread.envelopes, [community], resources, 1.53, wind_shift)
        assert generate_recommendations(*args) == generate_recommendations(*args)


class TestFindAssetsAtRisk:
    def test_distant_asset_excluded(self, spread, distant_asset):
        assert find_assets_at_risk([distant_asset], spread.envelopes) == []

    def test_earliest_envelope_wins(self, spread, community):
        [hit] = find_assets_at_risk([community], spread.envelopes)
        assert hit.within_envelope_hour == 1

    def test_sorted_by_distance(self, incident, weather, community):
        envelopes = compute_spread_envelopes(incident, weather).envelopes
        # Sitting exactly on a vertex of the 1h ring gives distance 0.
        lon, lat = envelopes[0].polygon[0][3]
        near = replace(community, id="near", name="Near", lat=lat, lon=lon)
        hits = find_assets_at_risk([community, near], envelopes)
        assert [h.asset.id for h in hits][0] == "near"

    def test_asset_at_incident_origin(self, incident, weather, community):
        same = replace(community, lat=incident.lat, lon=incident.lon)
        envelopes = compute_spread_envelopes(incident, weather).envelopes
        [hit] = find_assets_at_risk([same], envelopes)
        assert hit.within_envelope_hour == 1


class TestEvacuationCard:
    def test_prepare_advisory_for_later_envelope(self, incident, weather, community):
        at_risk = [AssetAtRisk(asset=community, within_envelope_hour=3, dist_km=1.5)]
        card = generate_evacuation_card(incident, weather, at_risk, 1.5)
        assert card.title == "Prepare Evacuation Advisory for Riverside Creek Community"
        assert card.confidence == "medium"
        assert card.why[0] == "3h envelope approaches Riverside Creek Community"
        assert card.timing.startswith("Potential impact in ~")

    def test_wind_shift_why_only_when_enabled(self, incident, weather, community):
        at_risk = [AssetAtRisk(asset=community, within_envelope_hour=1, dist_km=0.2)]
        disabled = WindShift(enabled=False, at_minutes=90, new_dir_deg=290)
        enabled = WindShift(enabled=True, at_minutes=90, new_dir_deg=290)
        without = generate_evacuation_card(incident, weather, at_risk, 1.5, disabled)
        with_shift = generate_evacuation_card(incident, weather, at_risk, 1.5, enabled)
        assert not any("shift" in w.lower() for w in without.why)
        assert any("Wind shift at +90m" in w for w in with_shift.why)

    @pytest.mark.parametrize(
        "humidity, expected",
        [
            (15, "Humidity < 20% increases spread risk"),
            (25, "Humidity < 30% moderately increases spread"),
            (45, None),
        ],
    )
    def test_humidity_tiers(self, incident, weather, community, humidity, expected):
        at_risk = [AssetAtRisk(asset=community, within_envelope_hour=1, dist_km=0.2)]
        card = generate_evacuation_card(
            incident, replace(weather, humidity_pct=humidity), at_risk, 1.5
        )
        humidity_lines = [w for w in card.why if w.startswith("Humidity")]
        assert humidity_lines == ([expected] if expected else [])

    def test_extra_assets_listed_as_action(self, incident, weather, community, distant_asset):
        at_risk = [
            AssetAtRisk(asset=community, within_envelope_hour=1, dist_km=0.2),
            AssetAtRisk(asset=distant_asset, within_envelope_hour=2, dist_km=0.8),
        ]
        card = generate_evacuation_card(incident, weather, at_risk, 1.5)
        assert card.actions[-1] == "Also monitor: Far Valley Hospital"


class TestResourcesCard:
    def test_moderate_risk_requests_air(self, resources):
        card = generate_resources_card(resources, 45, 0.5)
        assert card.title == "Request Air Support Within 1 Hour"
        assert card.timing == "Air ETA ~40 minutes"
        assert len(card.why) >= MIN_RESOURCE_WHY

    def test_low_risk_sufficient(self, resources):
        card = generate_resources_card(resources, 20, 0.5)
        assert card.title == "Current Resources Sufficient: Monitor Conditions"
        assert card.confidence == "medium"
        assert len(card.why) == MIN_RESOURCE_WHY

    def test_flank_exceeds_engine_coverage(self):
        res = Resources(1, 0, False, 20, 60)
        card = generate_resources_card(res, 20, 2.0)
        assert "1h flank length (~1.0km) exceeds engine coverage (~0.3km)" in card.why

    def test_no_units_gets_fallback_action(self):
        res = Resources(0, 0, False, 30, 60)
        card = generate_resources_card(res, 10, 0.1)
        assert card.actions == ("Request initial attack engines from nearest station",)

    @pytest.mark.parametrize("risk", [0, 35, 45, 55, 65, 100])
    @pytest.mark.parametrize("rate", [0.0, 0.5, 3.0])
    def test_padding_always_holds(self, risk, rate):
        for res in (Resources(0, 0, False, 30, 60), Resources(4, 2, True, 10, 20)):
            assert len(generate_resources_card(res, risk, rate).why) >= MIN_RESOURCE_WHY


class TestTacticsCard:
    def test_confidence_always_medium(self, weather, resources, wind_shift):
        assert generate_tactics_card(weather, resources, wind_shift).confidence == "medium"

    def test_flank_side(self, weather, resources):
        # wind from 245 -> spread 65 -> right flank 155 (< 180)
        assert generate_tactics_card(weather, resources).title == "Anchor and Hold Right Flank"
        north_wind = replace(weather, wind_dir_deg=0)
        assert generate_tactics_card(north_wind, resources).title == "Anchor and Hold Left Flank"

    def test_no_dozers(self, weather):
        card = generate_tactics_card(weather, Resources(2, 0, False, 20, 60))
        assert "Deploy engine crews for hand line construction" in card.actions
        assert card.actions[-1] == "Maintain escape routes for all personnel"


class TestBuildBrief:
    def test_trigger_order(self, weather, community, wind_shift):
        at_risk = [AssetAtRisk(asset=community, within_envelope_hour=1, dist_km=0.2)]
        brief = build_brief(weather, at_risk, wind_shift)
        assert brief.key_triggers == (
            "Wind direction change > 30° at +90m",
            "Humidity < 20%",
            "Envelope intersects asset buffer",
            "Spread rate exceeds 1.0 km/h",
        )
        assert brief.one_liner == (
            "Strong wind + very low humidity raises escape risk; "
            "protect Riverside Creek Community within 0-3h window."
        )

    def test_quiet_brief(self, weather):
        brief = build_brief(replace(weather, humidity_pct=40), [])
        assert brief.key_triggers == ("Spread rate exceeds 1.0 km/h",)
        assert brief.one_liner.startswith("Active fire with 8.2 m/s wind.")

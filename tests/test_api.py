"""Tests for the FastAPI wrapper."""

from __future__ import annotations

import json
from collections.abc import Generator
from dataclasses import asdict

import pytest
from fastapi.testclient import TestClient

from initial_attack.api import app
from initial_attack.spread import compute_spread_envelopes


@pytest.fixture(scope="module")
def client() -> Generator[TestClient, None, None]:
    """TestClient with lifespan entered so app.state is initialised."""
    with TestClient(app) as c:
        yield c


def _error_locs(resp) -> list[tuple]:
    return [tuple(e["loc"]) for e in resp.json()["detail"]]


@pytest.fixture
def incident_body(incident) -> dict:
    return asdict(incident)


@pytest.fixture
def weather_body(weather) -> dict:
    return asdict(weather)


@pytest.fixture
def resources_body(resources) -> dict:
    return asdict(resources)


class TestHealthEndpoint:
    def test_returns_ok(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert "version" in data
        assert "uptime_seconds" in data
        assert "run_count" in data

    def test_run_count_increments(self, client: TestClient, weather_body) -> None:
        before = client.get("/health").json()["run_count"]
        client.post("/risk", json={"weather": weather_body})
        after = client.get("/health").json()
        assert after["run_count"] == before + 1
        assert after["last_run"] is not None


class TestScenariosEndpoint:
    def test_lists_builtin_scenarios(self, client: TestClient) -> None:
        resp = client.get("/scenarios")
        assert resp.status_code == 200
        ids = [s["id"] for s in resp.json()]
        assert "riverside-creek" in ids


class TestSpreadEndpoint:
    def test_envelopes_and_explain(self, client: TestClient, incident_body, weather_body) -> None:
        resp = client.post("/spread", json={"incident": incident_body, "weather": weather_body})
        assert resp.status_code == 200
        data = resp.json()
        assert [e["t_hours"] for e in data["envelopes"]] == [1, 2, 3]
        assert data["explain"]["model"]
        ring = data["envelopes"][0]["polygon"][0]
        assert ring[0] == ring[-1]

    def test_wind_shift_note(self, client: TestClient, incident_body, weather_body) -> None:
        resp = client.post(
            "/spread",
            json={
                "incident": incident_body,
                "weather": weather_body,
                "wind_shift": {"enabled": True, "at_minutes": 90, "new_dir_deg": 290},
            },
        )
        assert "Wind shift at +90m: 245 deg -> 290 deg" in resp.json()["explain"]["notes"]

    def test_bad_horizon(self, client: TestClient, incident_body, weather_body) -> None:
        resp = client.post(
            "/spread",
            json={"incident": incident_body, "weather": weather_body, "horizon_hours": 0},
        )
        assert resp.status_code == 422
        assert _error_locs(resp) == [("body", "horizon_hours")]

    def test_humidity_out_of_range(self, client: TestClient, incident_body, weather_body) -> None:
        weather_body["humidity_pct"] = 140
        resp = client.post("/spread", json={"incident": incident_body, "weather": weather_body})
        assert resp.status_code == 422
        assert _error_locs(resp) == [("body", "weather", "humidity_pct")]

    def test_missing_incident(self, client: TestClient, weather_body) -> None:
        resp = client.post("/spread", json={"weather": weather_body})
        assert resp.status_code == 422
        assert _error_locs(resp) == [("body", "incident")]

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_wind_rejected(
        self, client: TestClient, incident_body, weather_body, value
    ) -> None:
        # json.dumps writes bare Infinity/NaN literals, which the server accepts as JSON
        weather_body["wind_speed_mps"] = value
        resp = client.post(
            "/spread",
            content=json.dumps({"incident": incident_body, "weather": weather_body}),
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 422
        assert _error_locs(resp) == [("body", "weather", "wind_speed_mps")]


class TestRiskEndpoint:
    def test_breakdown(self, client: TestClient, weather_body) -> None:
        resp = client.post(
            "/risk", json={"weather": weather_body, "time_to_impact_minutes": 63}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 63
        assert data["label"] == "high"
        assert set(data["breakdown"]) == {
            "wind_severity",
            "humidity_severity",
            "time_to_impact_severity",
        }

    def test_negative_minutes(self, client: TestClient, weather_body) -> None:
        resp = client.post("/risk", json={"weather": weather_body, "time_to_impact_minutes": -5})
        assert resp.status_code == 422
        assert _error_locs(resp) == [("body", "time_to_impact_minutes")]


class TestRecommendationsEndpoint:
    def test_three_cards(
        self, client: TestClient, incident, weather, incident_body, weather_body, resources_body, community
    ) -> None:
        spread = compute_spread_envelopes(incident, weather)
        resp = client.post(
            "/recommendations",
            json={
                "incident": incident_body,
                "weather": weather_body,
                "envelopes": [asdict(e) for e in spread.envelopes],
                "assets": [asdict(community)],
                "resources": resources_body,
                "spread_rate_kmh": spread.explain.rate_kmh,
            },
        )
        assert resp.status_code == 200
        data = resp.json()
        assert [c["type"] for c in data["cards"]] == ["evacuation", "resources", "tactics"]
        assert data["brief"]["one_liner"]
        assert data["assets_at_risk"][0]["asset"]["id"] == "asset_1"

    def test_envelopes_accept_geojson_geometry(
        self, client: TestClient, incident, weather, incident_body, weather_body, resources_body
    ) -> None:
        envelope = compute_spread_envelopes(incident, weather, horizon_hours=1).envelopes[0]
        resp = client.post(
            "/recommendations",
            json={
                "incident": incident_body,
                "weather": weather_body,
                "envelopes": [{"t_hours": 1, "polygon": envelope.to_geojson()}],
                "assets": [],
                "resources": resources_body,
            },
        )
        assert resp.status_code == 200

    def test_open_ring_rejected(
        self, client: TestClient, incident_body, weather_body, resources_body
    ) -> None:
        ring = [[-122.1, 37.4], [-122.0, 37.4], [-122.0, 37.5], [-122.1, 37.5]]
        resp = client.post(
            "/recommendations",
            json={
                "incident": incident_body,
                "weather": weather_body,
                "envelopes": [{"t_hours": 1, "polygon": [ring]}],
                "assets": [],
                "resources": resources_body,
            },
        )
        assert resp.status_code == 422
        assert _error_locs(resp) == [("body", "envelopes", 0, "polygon")]

    def test_bad_asset_reports_index(
        self, client: TestClient, incident_body, weather_body, resources_body, community
    ) -> None:
        bad = {**asdict(community), "type": "castle"}
        resp = client.post(
            "/recommendations",
            json={
                "incident": incident_body,
                "weather": weather_body,
                "envelopes": [],
                "assets": [asdict(community), bad],
                "resources": resources_body,
            },
        )
        assert resp.status_code == 422
        assert _error_locs(resp) == [("body", "assets", 1, "type")]


class TestClustersEndpoint:
    def test_clusters_and_incidents(self, client: TestClient, sample_hotspots) -> None:
        resp = client.post(
            "/clusters", json={"hotspots": [asdict(h) for h in sample_hotspots]}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["clusters"]) == 2
        assert data["clusters"][0]["id"] == "firms_cluster_0"
        assert data["incidents"][0]["id"] == "firms_cluster_0"
        assert data["default_resources"]["engines_available"] == 2

    def test_empty(self, client: TestClient) -> None:
        resp = client.post("/clusters", json={"hotspots": []})
        assert resp.json()["clusters"] == []

    def test_hotspots_required(self, client: TestClient) -> None:
        resp = client.post("/clusters", json={})
        assert resp.status_code == 422
        assert _error_locs(resp) == [("body", "hotspots")]


class TestBriefEndpoint:
    def test_scenario_markdown(self, client: TestClient, weather_body) -> None:
        resp = client.post(
            "/brief", json={"scenario_id": "riverside-creek", "weather": weather_body}
        )
        assert resp.status_code == 200
        assert "text/markdown" in resp.headers["content-type"]
        assert resp.text.startswith("# Incident Brief: ")

    def test_scenario_geojson(self, client: TestClient, weather_body) -> None:
        resp = client.post(
            "/brief?format=geojson",
            json={"scenario_id": "riverside-creek", "weather": weather_body},
        )
        assert resp.status_code == 200
        assert "application/geo+json" in resp.headers["content-type"]
        data = resp.json()
        assert data["type"] == "FeatureCollection"
        kinds = {f["properties"]["feature_type"] for f in data["features"]}
        assert {"incident", "envelope"} <= kinds

    def test_explicit_inputs_json(
        self, client: TestClient, incident_body, weather_body, resources_body, community
    ) -> None:
        resp = client.post(
            "/brief?format=json",
            json={
                "incident": incident_body,
                "weather": weather_body,
                "resources": resources_body,
                "assets": [asdict(community)],
                "horizon_hours": 2,
            },
        )
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["spread"]["envelopes"]) == 2
        assert data["incident"]["id"] == "inc_test"

    def test_unknown_scenario(self, client: TestClient, weather_body) -> None:
        resp = client.post("/brief", json={"scenario_id": "nope", "weather": weather_body})
        assert resp.status_code == 404

    def test_unknown_format(self, client: TestClient, weather_body) -> None:
        resp = client.post(
            "/brief?format=pdf",
            json={"scenario_id": "riverside-creek", "weather": weather_body},
        )
        assert resp.status_code == 422

    def test_needs_scenario_or_inputs(self, client: TestClient, weather_body) -> None:
        resp = client.post("/brief", json={"weather": weather_body})
        assert resp.status_code == 422


class TestAdvisoryEndpoint:
    def test_context_only(self, client: TestClient, weather_body) -> None:
        resp = client.post(
            "/advisory", json={"scenario_id": "riverside-creek", "weather": weather_body}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["prompt"].startswith("CURRENT SITUATION:")
        assert data["insights"] is None
        assert data["error"] is None

    def test_grounds_advisory_text(self, client: TestClient, weather_body) -> None:
        text = json.dumps(
            {
                "insights": [
                    {"type": "context", "message": "Humidity is low", "confidence": "high"},
                    {"type": "warning", "message": "A wind shift is coming", "confidence": "low"},
                    {"type": "context", "message": "Cite", "sources": ["[invented_fire]"]},
                ]
            }
        )
        resp = client.post(
            "/advisory",
            json={
                "scenario_id": "valley-grass",
                "weather": weather_body,
                "advisory_text": f"```json\n{text}\n```",
            },
        )
        assert resp.status_code == 200
        data = resp.json()
        assert [i["message"] for i in data["insights"]] == ["Humidity is low", "Cite"]
        assert data["insights"][1]["sources"] == []
        assert "Dropped citation to unknown incident: invented_fire" in data["dropped"]
        assert data["warnings"] == ["insights[2]: unknown confidence None, treated as low"]

    def test_unparseable_text_reported(self, client: TestClient, weather_body) -> None:
        resp = client.post(
            "/advisory",
            json={
                "scenario_id": "riverside-creek",
                "weather": weather_body,
                "advisory_text": "Sorry, I cannot help with that.",
            },
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["error"].startswith("invalid JSON")
        assert data["insights"] is None

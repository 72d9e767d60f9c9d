"""Shared fixtures for initial_attack tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from initial_attack.config import InitialAttackConfig
from initial_attack.models import (
    Asset,
    FirmsHotspot,
    Incident,
    Perimeter,
    Resources,
    Weather,
    WindShift,
)
from initial_attack.pipeline import Assessment, run_assessment

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def sample_firms_csv() -> str:
    return (FIXTURES_DIR / "firms_viirs_sample.csv").read_text()


@pytest.fixture
def sample_calfire_response() -> list[dict]:
    return json.loads((FIXTURES_DIR / "calfire_sample.json").read_text())


@pytest.fixture
def sample_openmeteo_response() -> dict:
    return json.loads((FIXTURES_DIR / "openmeteo_sample.json").read_text())


@pytest.fixture
def incident() -> Incident:
    return Incident(
        id="inc_test",
        name="Test Fire",
        lat=37.42,
        lon=-122.17,
        start_time_iso="2026-02-13T18:30:00Z",
        perimeter=Perimeter(radius_meters=120),
        fuel_proxy="mixed",
    )


@pytest.fixture
def weather() -> Weather:
    """Dry, windy afternoon: 8.2 m/s from 245 deg, 18% humidity."""
    return Weather(
        wind_speed_mps=8.2,
        wind_gust_mps=12.7,
        wind_dir_deg=245,
        temperature_c=29,
        humidity_pct=18,
    )


@pytest.fixture
def wind_shift() -> WindShift:
    return WindShift(enabled=True, at_minutes=90, new_dir_deg=290)


@pytest.fixture
def resources() -> Resources:
    return Resources(
        engines_available=3,
        dozers_available=1,
        air_support_available=True,
        eta_minutes_engine=18,
        eta_minutes_air=40,
    )


@pytest.fixture
def community() -> Asset:
    """Downwind of the test incident, about 1.5 km to the east-northeast."""
    return Asset(
        id="asset_1",
        type="community",
        name="Riverside Creek Community",
        lat=37.428,
        lon=-122.155,
        priority="high",
    )


@pytest.fixture
def distant_asset() -> Asset:
    return Asset(
        id="asset_far",
        type="hospital",
        name="Far Valley Hospital",
        lat=38.5,
        lon=-121.0,
        priority="high",
    )


@pytest.fixture
def sample_hotspots() -> list[FirmsHotspot]:
    """Two detections 300 m apart plus one 20 km away."""
    return [
        FirmsHotspot(
            latitude=37.400,
            longitude=-122.100,
            brightness=330.0,
            frp=5.0,
            acq_date="2026-02-13",
            acq_time="0930",
            satellite="N",
        ),
        FirmsHotspot(
            latitude=37.4027,
            longitude=-122.100,
            brightness=345.0,
            frp=7.5,
            acq_date="2026-02-13",
            acq_time="1042",
            satellite="N",
        ),
        FirmsHotspot(
            latitude=37.580,
            longitude=-122.100,
            brightness=360.0,
            frp=30.0,
            acq_date="2026-02-13",
            acq_time="0815",
            satellite="1",
        ),
    ]


@pytest.fixture
def sample_config() -> InitialAttackConfig:
    return InitialAttackConfig(firms_map_key="TESTKEY", request_timeout=5)


@pytest.fixture
def sample_assessment(
    incident: Incident,
    weather: Weather,
    resources: Resources,
    community: Asset,
    wind_shift: WindShift,
) -> Assessment:
    return run_assessment(incident, weather, resources, [community], wind_shift)

"""Configuration model for the initial-attack pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

OutputFormat = Literal["json", "geojson", "markdown"]

CALIFORNIA_BBOX = "-124.5,32.5,-114.1,42.1"


class InitialAttackConfig(BaseSettings):
    """All configurable parameters for the initial-attack pipeline.

    Values can be set via constructor arguments, environment variables
    prefixed with INITIAL_ATTACK_, or defaults.
    """

    model_config = {"env_prefix": "INITIAL_ATTACK_"}

    firms_map_key: str | None = Field(
        default=None, description="NASA FIRMS MAP_KEY. Live hotspots are disabled without it."
    )
    firms_sources: list[str] = Field(
        default_factory=lambda: ["VIIRS_SNPP_NRT"],
        description="FIRMS product identifiers to query and merge.",
    )
    firms_bbox: str = Field(
        default=CALIFORNIA_BBOX, description="FIRMS area as 'west,south,east,north'."
    )
    firms_days: int = Field(
        default=1, ge=1, le=10, description="Days of FIRMS detections to request."
    )
    request_timeout: int = Field(
        default=30, ge=5, le=300, description="HTTP request timeout in seconds."
    )
    http_retries: int = Field(
        default=3, ge=0, le=10, description="Retries for transient upstream HTTP failures."
    )
    http_backoff_factor: float = Field(
        default=0.5, ge=0.0, le=10.0, description="Exponential backoff factor between retries."
    )
    horizon_hours: int = Field(
        default=3, ge=1, le=12, description="Number of hourly spread envelopes to project."
    )
    cluster_eps_meters: float = Field(
        default=1500.0, gt=0.0, description="DBSCAN neighborhood radius for hotspots (meters)."
    )
    max_live_incidents: int = Field(
        default=15, ge=1, description="Maximum FIRMS clusters promoted to live incidents."
    )
    firms_cache_ttl: int = Field(
        default=180, ge=0, description="FIRMS cache lifetime in seconds."
    )
    registry_cache_ttl: int = Field(
        default=120, ge=0, description="CAL FIRE registry cache lifetime in seconds."
    )
    weather_cache_ttl: int = Field(
        default=300, ge=0, description="Open-Meteo weather cache lifetime in seconds."
    )
    output_file: Path = Field(
        default=Path("initial_attack_brief.json"), description="Output file path."
    )
    output_format: OutputFormat = Field(
        default="json", description="Output format: json, geojson, or markdown."
    )

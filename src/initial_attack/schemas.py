"""Pydantic schemas for records entering the core from outside.

Each schema validates the snake_case shape produced by ``dataclasses.asdict``
on the matching record and converts to it with ``to_model()``. Infinite and
NaN numbers are rejected everywhere; the compute modules assume finite,
in-range input.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from initial_attack.models import (
    Asset,
    AssetType,
    FirmsHotspot,
    FuelProxy,
    Incident,
    Perimeter,
    Priority,
    Resources,
    SpreadEnvelope,
    Weather,
    WindShift,
)


class Record(BaseModel):
    """Base for inbound records: finite numbers only, unknown keys ignored."""

    model_config = ConfigDict(allow_inf_nan=False, frozen=True)


class PerimeterIn(Record):
    radius_meters: float = Field(default=100.0, ge=0)


class IncidentIn(Record):
    id: str
    name: str
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    start_time_iso: str
    perimeter: PerimeterIn = Field(default_factory=PerimeterIn)
    fuel_proxy: FuelProxy
    notes: str = ""

    @field_validator("start_time_iso")
    @classmethod
    def validate_start_time(cls, v: str) -> str:
        """Validate ISO-8601 format."""
        try:
            datetime.fromisoformat(v.replace("Z", "+00:00") if v.endswith("Z") else v)
        except ValueError:
            raise ValueError('start_time_iso must be an ISO-8601 timestamp (e.g. "2026-02-13T10:00:00Z")') from None
        return v

    def to_model(self) -> Incident:
        return Incident(
            id=self.id,
            name=self.name,
            lat=self.lat,
            lon=self.lon,
            start_time_iso=self.start_time_iso,
            perimeter=Perimeter(radius_meters=self.perimeter.radius_meters),
            fuel_proxy=self.fuel_proxy,
            notes=self.notes,
        )


class WeatherIn(Record):
    wind_speed_mps: float = Field(..., ge=0)
    wind_gust_mps: float = Field(..., ge=0)
    wind_dir_deg: float = Field(..., ge=0, le=360)
    temperature_c: float
    humidity_pct: float = Field(..., ge=0, le=100)

    def to_model(self) -> Weather:
        return Weather(**self.model_dump())


class WindShiftIn(Record):
    enabled: bool
    at_minutes: float = Field(..., ge=0)
    new_dir_deg: float = Field(..., ge=0, le=360)

    def to_model(self) -> WindShift:
        return WindShift(**self.model_dump())


class AssetIn(Record):
    id: str
    type: AssetType
    name: str
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    priority: Priority

    def to_model(self) -> Asset:
        return Asset(**self.model_dump())


class ResourcesIn(Record):
    engines_available: int = Field(..., ge=0)
    dozers_available: int = Field(..., ge=0)
    air_support_available: bool
    eta_minutes_engine: float = Field(..., ge=0)
    eta_minutes_air: float = Field(..., ge=0)

    def to_model(self) -> Resources:
        return Resources(**self.model_dump())


class EnvelopeIn(Record):
    """A spread envelope. ``polygon`` is a GeoJSON Polygon geometry or its bare ring list."""

    t_hours: int = Field(..., ge=1)
    polygon: list[list[tuple[float, float]]] = Field(..., min_length=1)

    @field_validator("polygon", mode="before")
    @classmethod
    def unwrap_geometry(cls, v: Any) -> Any:
        if isinstance(v, dict):
            if v.get("type") != "Polygon":
                raise ValueError("geometry type must be Polygon")
            return v.get("coordinates")
        return v

    @field_validator("polygon")
    @classmethod
    def validate_rings(cls, v: list[list[tuple[float, float]]]) -> list[list[tuple[float, float]]]:
        for i, ring in enumerate(v):
            if len(ring) < 4:
                raise ValueError(f"ring {i} needs at least 4 positions")
            if ring[0] != ring[-1]:
                raise ValueError(f"ring {i} is not closed")
        return v

    def to_model(self) -> SpreadEnvelope:
        return SpreadEnvelope(
            t_hours=self.t_hours,
            polygon=tuple(tuple(ring) for ring in self.polygon),
        )


class HotspotIn(Record):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    brightness: float = 0.0
    frp: float = 0.0
    acq_date: str = ""
    acq_time: str = ""
    satellite: str = ""
    instrument: str = ""
    confidence: str = ""
    scan: float = 0.0
    track: float = 0.0
    bright_t31: float = 0.0
    version: str = ""
    daynight: str = ""

    @field_validator("acq_time", "confidence", "version", mode="before")
    @classmethod
    def numeric_to_str(cls, v: Any) -> Any:
        # FIRMS JSON sends HHMM and MODIS confidence as integers
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    def to_model(self) -> FirmsHotspot:
        return FirmsHotspot(**self.model_dump())


def envelopes_to_model(envelopes: list[EnvelopeIn]) -> tuple[SpreadEnvelope, ...]:
    """Convert envelopes and return them in ascending hour order."""
    return tuple(sorted((e.to_model() for e in envelopes), key=lambda e: e.t_hours))

"""Data models for the initial-attack pipeline.

All records are frozen dataclasses: a changed incident or weather snapshot is a
new value. Sequences are stored as tuples for the same reason. Records arriving
from outside are validated by the pydantic schemas in
:mod:`initial_attack.schemas`; the compute modules assume well-typed input.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

FuelProxy = Literal["grass", "brush", "mixed", "chaparral"]
AssetType = Literal["community", "infrastructure", "school", "hospital"]
Priority = Literal["high", "medium", "low"]
Confidence = Literal["high", "medium", "low"]
CardType = Literal["evacuation", "resources", "tactics"]
RiskLabel = Literal["low", "moderate", "high", "extreme"]
Outcome = Literal["contained", "escaped", "partial"]

# GeoJSON ordering: (lon, lat)
Position = tuple[float, float]
Ring = tuple[Position, ...]
PolygonRings = tuple[Ring, ...]

# ---------------------------------------------------------------------------
# Incident, weather, assets and resources
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Perimeter:
    """Point-plus-radius approximation of the burned area."""

    radius_meters: float
    type: str = "Point"


@dataclass(frozen=True)
class Incident:
    """Identity and location of one fire."""

    id: str
    name: str
    lat: float
    lon: float
    start_time_iso: str
    perimeter: Perimeter
    fuel_proxy: FuelProxy
    notes: str = ""


@dataclass(frozen=True)
class Weather:
    """Point-in-time weather snapshot. Wind direction is meteorological (from)."""

    wind_speed_mps: float
    wind_gust_mps: float
    wind_dir_deg: float
    temperature_c: float
    humidity_pct: float


@dataclass(frozen=True)
class WindShift:
    """What-if wind shift: at ``at_minutes`` from now the wind comes from ``new_dir_deg``."""

    enabled: bool
    at_minutes: float
    new_dir_deg: float


@dataclass(frozen=True)
class Asset:
    """A point of value to protect."""

    id: str
    type: AssetType
    name: str
    lat: float
    lon: float
    priority: Priority


@dataclass(frozen=True)
class Resources:
    """Responding units available to the incident."""

    engines_available: int
    dozers_available: int
    air_support_available: bool
    eta_minutes_engine: float
    eta_minutes_air: float


# ---------------------------------------------------------------------------
# Spread model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SpreadEnvelope:
    """Projected fire extent at a whole-hour horizon."""

    t_hours: int
    polygon: PolygonRings

    def to_geojson(self) -> dict[str, Any]:
        return {
            "type": "Polygon",
            "coordinates": [[list(p) for p in ring] for ring in self.polygon],
        }


@dataclass(frozen=True)
class SpreadRate:
    """Spread rate (km/h) and the dimensionless factors that produced it."""

    rate_kmh: float
    wind_factor: float
    humidity_factor: float
    fuel_factor: float


@dataclass(frozen=True)
class SpreadExplain:
    model: str
    rate_kmh: float
    wind_factor: float
    humidity_factor: float
    notes: tuple[str, ...]


@dataclass(frozen=True)
class SpreadResult:
    envelopes: tuple[SpreadEnvelope, ...]
    explain: SpreadExplain


# ---------------------------------------------------------------------------
# Risk and recommendations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RiskBreakdown:
    wind_severity: int
    humidity_severity: int
    time_to_impact_severity: int


@dataclass(frozen=True)
class RiskScore:
    """Bounded 0-100 escalation risk with its component severities."""

    total: int
    breakdown: RiskBreakdown
    label: RiskLabel


@dataclass(frozen=True)
class AssetAtRisk:
    """An asset matched to the soonest envelope it falls in or near."""

    asset: Asset
    within_envelope_hour: int
    dist_km: float


@dataclass(frozen=True)
class ActionCard:
    type: CardType
    title: str
    timing: str
    confidence: Confidence
    why: tuple[str, ...]
    actions: tuple[str, ...]


@dataclass(frozen=True)
class Brief:
    one_liner: str
    key_triggers: tuple[str, ...]


@dataclass(frozen=True)
class RecommendationsResult:
    cards: tuple[ActionCard, ...]
    brief: Brief
    risk_score: RiskScore
    assets_at_risk: tuple[AssetAtRisk, ...] = ()


# ---------------------------------------------------------------------------
# Satellite detections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FirmsHotspot:
    """One FIRMS satellite fire detection."""

    latitude: float
    longitude: float
    brightness: float
    frp: float
    acq_date: str  # "YYYY-MM-DD"
    acq_time: str  # "HHMM", leading zeros optional
    satellite: str = ""
    instrument: str = ""
    confidence: str = ""
    scan: float = 0.0
    track: float = 0.0
    bright_t31: float = 0.0
    version: str = ""
    daynight: str = ""

    @property
    def acquired_at(self) -> datetime:
        """Acquisition instant in UTC; the epoch when the date is unparseable."""
        hhmm = self.acq_time.zfill(4)
        try:
            return datetime.strptime(f"{self.acq_date} {hhmm[:2]}:{hhmm[2:4]}", "%Y-%m-%d %H:%M").replace(
                tzinfo=timezone.utc
            )
        except ValueError:
            return datetime.fromtimestamp(0, tz=timezone.utc)


@dataclass(frozen=True)
class FireCluster:
    """A group of hotspots treated as one fire event."""

    id: str
    centroid_lat: float
    centroid_lon: float
    point_count: int
    max_frp: float
    max_brightness: float
    total_frp: float
    last_seen: str  # ISO-8601, UTC
    radius_meters: int
    hotspots: tuple[FirmsHotspot, ...]


# ---------------------------------------------------------------------------
# Archive and scenarios
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HistoricalIncident:
    """An archived fire used for analog matching."""

    id: str
    name: str
    date: str
    location: str
    fuel: FuelProxy
    wind_speed_mps: float
    humidity_pct: float
    temperature_c: float
    outcome: Outcome
    containment_time_hours: float
    final_acres: float
    engines: int
    dozers: int
    air_support: bool
    key_lesson: str


@dataclass(frozen=True)
class Scenario:
    """A canned initial-attack situation: incident, resources and assets."""

    id: str
    name: str
    description: str
    incident: Incident
    resources: Resources
    assets: tuple[Asset, ...]
    default_wind_shift: WindShift | None = None

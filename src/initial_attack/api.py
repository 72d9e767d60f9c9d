"""FastAPI wrapper for the initial-attack decision core."""

from __future__ import annotations

import logging
import tempfile
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field, model_validator

from initial_attack import __version__
from initial_attack.cluster import (
    DEFAULT_FIRMS_RESOURCES,
    EPS_METERS,
    cluster_hotspots,
    cluster_to_incident,
)
from initial_attack.config import OutputFormat
from initial_attack.exporters import export_geojson, export_markdown
from initial_attack.models import WindShift
from initial_attack.pipeline import (
    Assessment,
    advisory_context,
    ground_advisory_output,
    run_assessment,
)
from initial_attack.recommendations import generate_recommendations
from initial_attack.scenarios import get_all_scenarios, get_scenario_by_id
from initial_attack.schemas import (
    AssetIn,
    EnvelopeIn,
    HotspotIn,
    IncidentIn,
    Record,
    ResourcesIn,
    WeatherIn,
    WindShiftIn,
    envelopes_to_model,
)
from initial_attack.scoring import compute_risk_score
from initial_attack.spread import compute_spread_envelopes

logger = logging.getLogger(__name__)

# Used by /recommendations when the caller does not pass the spread rate.
DEFAULT_SPREAD_RATE_KMH = 1.0
MAX_HORIZON_HOURS = 12

_CONTENT_TYPES: dict[str, str] = {
    "json": "application/json",
    "geojson": "application/geo+json",
    "markdown": "text/markdown; charset=utf-8",
}

_SUFFIX: dict[str, str] = {
    "geojson": ".geojson",
    "markdown": ".md",
}

_EXPORTERS: dict[str, Any] = {
    "geojson": export_geojson,
    "markdown": export_markdown,
}


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class ClustersRequest(Record):
    hotspots: list[HotspotIn]
    eps_meters: float = Field(default=EPS_METERS, ge=1, le=100_000)


class SpreadRequest(Record):
    incident: IncidentIn
    weather: WeatherIn
    horizon_hours: int = Field(default=3, ge=1, le=MAX_HORIZON_HOURS)
    wind_shift: WindShiftIn | None = None


class RiskRequest(Record):
    weather: WeatherIn
    time_to_impact_minutes: float | None = Field(default=None, ge=0)


class RecommendationsRequest(Record):
    incident: IncidentIn
    weather: WeatherIn
    envelopes: list[EnvelopeIn]
    assets: list[AssetIn]
    resources: ResourcesIn
    spread_rate_kmh: float = Field(default=DEFAULT_SPREAD_RATE_KMH, ge=0)
    wind_shift: WindShiftIn | None = None


class BriefRequest(Record):
    """Either ``scenario_id`` or the full incident/resources/assets set; weather always."""

    weather: WeatherIn
    scenario_id: str | None = None
    incident: IncidentIn | None = None
    resources: ResourcesIn | None = None
    assets: list[AssetIn] = Field(default_factory=list)
    wind_shift: WindShiftIn | None = None
    horizon_hours: int = Field(default=3, ge=1, le=MAX_HORIZON_HOURS)

    @model_validator(mode="after")
    def require_situation(self) -> BriefRequest:
        if self.scenario_id is None and (self.incident is None or self.resources is None):
            raise ValueError("either scenario_id or both incident and resources are required")
        return self


class AdvisoryRequest(BriefRequest):
    advisory_text: str | None = Field(
        default=None, description="Raw advisory-layer output to parse and ground."
    )


class AdvisoryResponse(BaseModel):
    prompt: str
    source_ids: list[str]
    insights: list[dict[str, Any]] | None = None
    dropped: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    error: str | None = None


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncGenerator[None, None]:
    """Store startup state for the /health endpoint."""
    application.state.start_time = datetime.now(tz=timezone.utc)
    application.state.last_run = None
    application.state.run_count = 0
    yield


app = FastAPI(
    title="Initial Attack API",
    description="Explainable decision support for wildfire initial attack.",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    # the rejected input is omitted: JSON cannot carry a non-finite float
    errors = [{k: v for k, v in e.items() if k not in ("input", "ctx")} for e in exc.errors()]
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})


def _record_run() -> None:
    app.state.last_run = datetime.now(tz=timezone.utc)
    app.state.run_count += 1


def _wind_shift(raw: WindShiftIn | None) -> WindShift | None:
    return None if raw is None else raw.to_model()


def _assess(body: BriefRequest) -> Assessment:
    """Run one assessment for a scenario id or explicit inputs."""
    weather = body.weather.to_model()
    wind_shift = _wind_shift(body.wind_shift)
    if body.scenario_id is not None:
        scenario = get_scenario_by_id(body.scenario_id)
        if scenario is None:
            raise HTTPException(status_code=404, detail=f"Unknown scenario: {body.scenario_id}")
        incident, resources, assets = scenario.incident, scenario.resources, scenario.assets
        wind_shift = wind_shift or scenario.default_wind_shift
    else:
        incident = body.incident.to_model()
        resources = body.resources.to_model()
        assets = tuple(a.to_model() for a in body.assets)

    return run_assessment(incident, weather, resources, assets, wind_shift, body.horizon_hours)


def _export(assessment: Assessment, fmt: OutputFormat) -> Response:
    """Serialize an assessment into the requested format."""
    if fmt == "json":
        return JSONResponse(content=assessment.to_dict())

    exporter = _EXPORTERS[fmt]
    suffix = _SUFFIX[fmt]

    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
        tmp_path = Path(tmp.name)
    try:
        exporter(assessment, tmp_path)
        content = tmp_path.read_text(encoding="utf-8")
    finally:
        tmp_path.unlink(missing_ok=True)

    return Response(content=content, media_type=_CONTENT_TYPES[fmt])


@app.get("/health")
def health() -> dict[str, Any]:
    """Server health check with uptime, version, and run count."""
    now = datetime.now(tz=timezone.utc)
    return {
        "status": "ok",
        "version": __version__,
        "uptime_seconds": round((now - app.state.start_time).total_seconds(), 1),
        "last_run": app.state.last_run.isoformat() if app.state.last_run else None,
        "run_count": app.state.run_count,
    }


@app.get("/scenarios")
def list_scenarios() -> JSONResponse:
    return JSONResponse(content=[asdict(s) for s in get_all_scenarios()])


@app.post("/clusters")
def post_clusters(body: ClustersRequest) -> JSONResponse:
    """Cluster raw hotspots and normalize each cluster into an incident."""
    hotspots = [h.to_model() for h in body.hotspots]
    clusters = cluster_hotspots(hotspots, eps_meters=body.eps_meters)
    _record_run()
    return JSONResponse(
        content={
            "clusters": [asdict(c) for c in clusters],
            "incidents": [asdict(cluster_to_incident(c, i)) for i, c in enumerate(clusters)],
            "default_resources": asdict(DEFAULT_FIRMS_RESOURCES),
        }
    )


@app.post("/spread")
def post_spread(body: SpreadRequest) -> JSONResponse:
    result = compute_spread_envelopes(
        body.incident.to_model(),
        body.weather.to_model(),
        body.horizon_hours,
        _wind_shift(body.wind_shift),
    )
    _record_run()
    return JSONResponse(content=asdict(result))


@app.post("/risk")
def post_risk(body: RiskRequest) -> JSONResponse:
    score = compute_risk_score(body.weather.to_model(), body.time_to_impact_minutes)
    _record_run()
    return JSONResponse(content=asdict(score))


@app.post("/recommendations")
def post_recommendations(body: RecommendationsRequest) -> JSONResponse:
    result = generate_recommendations(
        body.incident.to_model(),
        body.weather.to_model(),
        envelopes_to_model(body.envelopes),
        [a.to_model() for a in body.assets],
        body.resources.to_model(),
        body.spread_rate_kmh,
        _wind_shift(body.wind_shift),
    )
    _record_run()
    return JSONResponse(content=asdict(result))


@app.post("/brief")
def post_brief(
    body: BriefRequest,
    format: Annotated[OutputFormat, Query(description="Output format.")] = "markdown",
) -> Response:
    """Run a full assessment and return it as an incident brief."""
    assessment = _assess(body)
    _record_run()
    return _export(assessment, format)


@app.post("/advisory")
def post_advisory(body: AdvisoryRequest) -> AdvisoryResponse:
    """Advisory context for an assessment, with advisory output grounded when supplied.

    Unparseable advisory output is reported in ``error``; it never fails the request.
    """
    assessment = _assess(body)
    context = advisory_context(assessment)
    response = AdvisoryResponse(prompt=context.to_prompt(), source_ids=sorted(context.source_ids))
    if body.advisory_text is None:
        return response

    parsed, grounded = ground_advisory_output(assessment, body.advisory_text)
    if grounded is None:
        return response.model_copy(update={"error": parsed.reason})
    return response.model_copy(
        update={
            "insights": [asdict(i) for i in grounded.insights],
            "dropped": list(grounded.dropped),
            "warnings": list(parsed.warnings),
        }
    )

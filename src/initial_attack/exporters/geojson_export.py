"""GeoJSON exporter for assessment results."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from initial_attack.models import AssetAtRisk, Incident, SpreadEnvelope
from initial_attack.pipeline import Assessment


def _make_incident_feature(incident: Incident) -> dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {
            "type": "Point",
            "coordinates": [incident.lon, incident.lat],
        },
        "properties": {
            "feature_type": "incident",
            "id": incident.id,
            "name": incident.name,
            "start_time_iso": incident.start_time_iso,
            "radius_meters": incident.perimeter.radius_meters,
            "fuel_proxy": incident.fuel_proxy,
        },
    }


def _make_envelope_feature(envelope: SpreadEnvelope, incident_id: str) -> dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": envelope.to_geojson(),
        "properties": {
            "feature_type": "envelope",
            "incident_id": incident_id,
            "t_hours": envelope.t_hours,
        },
    }


def _make_asset_feature(item: AssetAtRisk) -> dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {
            "type": "Point",
            "coordinates": [item.asset.lon, item.asset.lat],
        },
        "properties": {
            "feature_type": "asset_at_risk",
            "id": item.asset.id,
            "name": item.asset.name,
            "asset_type": item.asset.type,
            "priority": item.asset.priority,
            "within_envelope_hour": item.within_envelope_hour,
            "dist_km": round(item.dist_km, 3),
        },
    }


def export_geojson(
    assessment: Assessment,
    output_path: Path,
) -> Path:
    """Export an assessment as a GeoJSON FeatureCollection.

    Creates a FeatureCollection with three feature types:
    - "incident": the ignition point with its perimeter radius
    - "envelope": one polygon per projected hour, earliest first
    - "asset_at_risk": assets inside or near an envelope

    GeoJSON coordinates are [longitude, latitude] per RFC 7946.
    """
    rec = assessment.recommendations
    features: list[dict[str, Any]] = [_make_incident_feature(assessment.incident)]
    features.extend(
        _make_envelope_feature(env, assessment.incident.id) for env in assessment.spread.envelopes
    )
    features.extend(_make_asset_feature(a) for a in rec.assets_at_risk)

    geojson = {
        "type": "FeatureCollection",
        "metadata": {
            "generated": assessment.generated_at,
            "source": "initial-attack",
            "model": assessment.spread.explain.model,
            "risk_total": rec.risk_score.total,
            "risk_label": rec.risk_score.label,
            "envelope_count": len(assessment.spread.envelopes),
            "asset_at_risk_count": len(rec.assets_at_risk),
        },
        "features": features,
    }

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(geojson, f, indent=2, ensure_ascii=False)

    return output_path

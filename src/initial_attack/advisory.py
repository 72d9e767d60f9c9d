"""Boundary to the natural-language advisory layer.

The advisory layer is an external collaborator: it receives the computed
situation and returns free text. This module builds the context it receives,
parses what comes back into typed insights, and enforces the grounding rules
(no wind-shift claims unless a shift is actually modelled, citations only to
incidents that were in the context). Nothing in the recommendation path
depends on it.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from initial_attack.analogs import ScoredIncident
from initial_attack.models import (
    Incident,
    RecommendationsResult,
    SpreadExplain,
    Weather,
    WindShift,
)

logger = logging.getLogger(__name__)

InsightType = Literal["warning", "recommendation", "context"]

MAX_INSIGHTS = 3
_INSIGHT_TYPES = ("warning", "recommendation", "context")
_CONFIDENCES = ("high", "medium", "low")
_FENCE_OPEN = re.compile(r"^```(?:json)?\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")
_BRACKETED_ID = re.compile(r"^\s*\[([^\]]+)\]\s*(.*)$")


@dataclass(frozen=True)
class AdvisoryContext:
    """Everything the advisory layer is allowed to know about the situation."""

    incident: Incident
    weather: Weather
    risk_total: int
    risk_label: str
    spread_rate_kmh: float
    assets_at_risk: tuple[str, ...]
    card_titles: tuple[str, ...]
    similar: tuple[ScoredIncident, ...]
    wind_shift: WindShift | None = None

    @property
    def source_ids(self) -> frozenset[str]:
        return frozenset(s.incident.id for s in self.similar)

    def to_prompt(self) -> str:
        inc, w = self.incident, self.weather
        if self.similar:
            history = "\n".join(
                f"- [{s.incident.id}] {s.incident.name} ({s.incident.date}): {s.incident.fuel} fire, "
                f"wind {s.incident.wind_speed_mps:g} m/s, humidity {s.incident.humidity_pct:g}%, "
                f"{s.incident.outcome} in {s.incident.containment_time_hours:g}h, "
                f"{s.incident.final_acres:g} acres. Lesson: {s.incident.key_lesson}"
                for s in self.similar
            )
        else:
            history = "No similar historical incidents found"
        if self.wind_shift is not None and self.wind_shift.enabled:
            shift = (
                f"Wind shift modelled at +{self.wind_shift.at_minutes:g}m "
                f"to {self.wind_shift.new_dir_deg:g} deg"
            )
        else:
            shift = "No wind shift modelled; do not claim one"
        return "\n".join(
            [
                "CURRENT SITUATION:",
                f"- Incident: {inc.name}",
                f"- Location: {inc.lat:.2f}, {inc.lon:.2f}",
                f"- Fuel Type: {inc.fuel_proxy}",
                f"- Weather: Wind {w.wind_speed_mps:g} m/s from {w.wind_dir_deg:g} deg, "
                f"Humidity {w.humidity_pct:g}%, Temp {w.temperature_c:g} C",
                f"- Risk Score: {self.risk_total}/100 ({self.risk_label})",
                f"- Spread Rate: {self.spread_rate_kmh:.1f} km/h",
                f"- Assets at Risk: {', '.join(self.assets_at_risk) or 'No immediate asset threats'}",
                f"- Wind Shift: {shift}",
                f"- Action Cards: {'; '.join(self.card_titles)}",
                "",
                f"HISTORICAL CONTEXT ({len(self.similar)} similar incidents):",
                history,
                "",
                'Return JSON only: {"insights": [{"type", "message", "confidence", '
                '"reasoning": [...], "sources": [...]}]}. Cite sources by the bracketed id.',
            ]
        )


def build_advisory_context(
    incident: Incident,
    weather: Weather,
    recommendations: RecommendationsResult,
    spread_rate_kmh: float,
    similar: Sequence[ScoredIncident] = (),
    wind_shift: WindShift | None = None,
) -> AdvisoryContext:
    return AdvisoryContext(
        incident=incident,
        weather=weather,
        risk_total=recommendations.risk_score.total,
        risk_label=recommendations.risk_score.label,
        spread_rate_kmh=spread_rate_kmh,
        assets_at_risk=tuple(a.asset.name for a in recommendations.assets_at_risk),
        card_titles=tuple(c.title for c in recommendations.cards),
        similar=tuple(similar),
        wind_shift=wind_shift,
    )


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Evidence:
    """A citation: the id of a historical incident plus an optional note."""

    id: str
    note: str = ""


@dataclass(frozen=True)
class Insight:
    type: InsightType
    message: str
    confidence: str
    reasoning: tuple[str, ...] = ()
    sources: tuple[Evidence, ...] = ()


@dataclass(frozen=True)
class ParsedInsights:
    insights: tuple[Insight, ...]
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class InsightParseError:
    """Advisory output that could not be turned into insights."""

    reason: str
    raw: str = ""


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", text)).strip()
    return text


class _EvidenceObject(BaseModel):
    """Object-form citation: ``{"id": ..., "note": ...}`` or ``{"cite": ..., "label": ...}``."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(min_length=1, validation_alias=AliasChoices("id", "cite"))
    note: str = Field(default="", validation_alias=AliasChoices("note", "label"))


class _RawInsight(BaseModel):
    """One insight as the advisory layer wrote it. Only ``message`` is mandatory."""

    model_config = ConfigDict(str_strip_whitespace=True)

    message: str = Field(min_length=1)
    type: Any = None
    confidence: Any = None
    reasoning: list[str] = Field(default_factory=list)
    sources: list[Any] = Field(
        default_factory=list, validation_alias=AliasChoices("sources", "evidence")
    )

    @field_validator("reasoning", mode="before")
    @classmethod
    def coerce_reasoning(cls, v: Any) -> list[str]:
        if isinstance(v, str):
            return [v]
        if not isinstance(v, list):
            return []
        return [str(r) for r in v if str(r).strip()]

    @field_validator("sources", mode="before")
    @classmethod
    def coerce_sources(cls, v: Any) -> list[Any]:
        return v if isinstance(v, list) else []


class _AdvisoryOutput(BaseModel):
    insights: list[Any]


def _parse_evidence(entry: Any) -> Evidence | None:
    if isinstance(entry, str):
        m = _BRACKETED_ID.match(entry)
        if m:
            return Evidence(id=m.group(1).strip(), note=m.group(2).strip())
        return Evidence(id=entry.strip()) if entry.strip() else None
    if isinstance(entry, dict):
        try:
            obj = _EvidenceObject.model_validate(entry)
        except ValidationError:
            return None
        return Evidence(id=obj.id.strip("[]"), note=obj.note)
    return None


def _parse_insight(raw: Any, index: int, warnings: list[str]) -> Insight | None:
    if not isinstance(raw, dict):
        warnings.append(f"insights[{index}]: expected an object")
        return None
    try:
        item = _RawInsight.model_validate(raw)
    except ValidationError:
        warnings.append(f"insights[{index}]: missing message")
        return None

    kind = item.type
    if kind not in _INSIGHT_TYPES:
        warnings.append(f"insights[{index}]: unknown type {kind!r}, treated as context")
        kind = "context"
    confidence = item.confidence
    if confidence not in _CONFIDENCES:
        warnings.append(f"insights[{index}]: unknown confidence {confidence!r}, treated as low")
        confidence = "low"

    sources: list[Evidence] = []
    for j, entry in enumerate(item.sources):
        evidence = _parse_evidence(entry)
        if evidence is None:
            warnings.append(f"insights[{index}].sources[{j}]: unrecognized entry dropped")
        else:
            sources.append(evidence)

    return Insight(
        type=kind,
        message=item.message,
        confidence=confidence,
        reasoning=tuple(item.reasoning),
        sources=tuple(sources),
    )


def parse_insights(text: str) -> ParsedInsights | InsightParseError:
    """Parse advisory output. Never raises.

    Accepts a JSON object with an ``insights`` list, optionally wrapped in a
    markdown code fence. Individually malformed insights are dropped and
    reported in ``warnings``.
    """
    body = strip_code_fences(text or "")
    if not body:
        return InsightParseError("empty response", text or "")
    try:
        output = _AdvisoryOutput.model_validate_json(body)
    except ValidationError as exc:
        error = exc.errors()[0]
        if error["type"] == "json_invalid":
            detail = error.get("ctx", {}).get("error", error["msg"])
            return InsightParseError(f"invalid JSON: {detail}", text)
        return InsightParseError("expected an object with an 'insights' list", text)

    warnings: list[str] = []
    insights = [
        insight
        for i, raw in enumerate(output.insights)
        if (insight := _parse_insight(raw, i, warnings)) is not None
    ]
    return ParsedInsights(insights=tuple(insights), warnings=tuple(warnings))


# ---------------------------------------------------------------------------
# Grounding
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GroundedInsights:
    insights: tuple[Insight, ...]
    dropped: tuple[str, ...] = field(default=())


def wind_shift_allowed(wind_shift: WindShift | None, explain: SpreadExplain | None = None) -> bool:
    """A wind shift may be mentioned only if one is enabled or the spread notes record one."""
    if wind_shift is not None and wind_shift.enabled:
        return True
    if explain is None:
        return False
    return any("wind shift" in note.lower() for note in explain.notes)


def _mentions_shift(insight: Insight) -> bool:
    text = " ".join((insight.message, *insight.reasoning)).lower()
    return "shift" in text


def enforce_grounding(
    insights: Sequence[Insight],
    context: AdvisoryContext,
    explain: SpreadExplain | None = None,
) -> GroundedInsights:
    """Drop claims the computed context does not support and keep at most three insights.

    Insights that mention a wind shift are dropped unless one is modelled.
    Citations to incidents outside the context are removed from the insight.
    """
    shift_ok = wind_shift_allowed(context.wind_shift, explain)
    known = context.source_ids
    kept: list[Insight] = []
    dropped: list[str] = []

    for insight in insights:
        if not shift_ok and _mentions_shift(insight):
            dropped.append(f"Dropped wind-shift claim not supported by context: {insight.message}")
            continue
        sources = tuple(s for s in insight.sources if s.id in known)
        for s in insight.sources:
            if s.id not in known:
                dropped.append(f"Dropped citation to unknown incident: {s.id}")
        kept.append(
            Insight(insight.type, insight.message, insight.confidence, insight.reasoning, sources)
        )

    if len(kept) > MAX_INSIGHTS:
        dropped.append(f"Kept first {MAX_INSIGHTS} of {len(kept)} insights")
        kept = kept[:MAX_INSIGHTS]
    if dropped:
        logger.debug("Grounding removed %d item(s)", len(dropped))
    return GroundedInsights(insights=tuple(kept), dropped=tuple(dropped))

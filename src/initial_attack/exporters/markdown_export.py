"""Markdown incident brief exporter."""

from __future__ import annotations

from pathlib import Path

from initial_attack.analogs import historical_summary
from initial_attack.pipeline import Assessment


def render_brief_markdown(assessment: Assessment) -> str:
    """Render the incident brief: summary, risk table, triggers, cards, model notes."""
    rec = assessment.recommendations
    risk = rec.risk_score
    explain = assessment.spread.explain

    lines: list[str] = [
        f"# Incident Brief: {assessment.incident.name}",
        "",
        f"**Generated:** {assessment.generated_at}",
        "",
        "## Summary",
        "",
        rec.brief.one_liner,
        "",
        f"## Risk Score: {risk.total}/100 ({risk.label.upper()})",
        "",
        "| Factor | Score |",
        "|---|---|",
        f"| Wind Severity | {risk.breakdown.wind_severity}/100 |",
        f"| Humidity Severity | {risk.breakdown.humidity_severity}/100 |",
        f"| Time-to-Impact | {risk.breakdown.time_to_impact_severity}/100 |",
        "",
        "## Key Triggers",
        "",
    ]
    lines.extend(f"- {t}" for t in rec.brief.key_triggers)
    lines.extend(["", "## Action Cards", ""])

    for card in rec.cards:
        lines.extend(
            [
                f"### {card.type.capitalize()}: {card.title}",
                "",
                f"**Timing:** {card.timing} | **Confidence:** {card.confidence}",
                "",
                "**Why:**",
            ]
        )
        lines.extend(f"- {w}" for w in card.why)
        lines.extend(["", "**Actions:**"])
        lines.extend(f"- {a}" for a in card.actions)
        lines.append("")

    # -- Similar incidents (context only) --
    if assessment.similar:
        lines.extend(["## Similar Incidents", ""])
        lines.extend(f"- {line}" for line in historical_summary([s.incident for s in assessment.similar]))
        lines.append("")

    lines.extend(
        [
            "## Model Details",
            "",
            f"- Model: {explain.model}",
            f"- Spread Rate: {explain.rate_kmh:.2f} km/h",
        ]
    )
    lines.extend(f"- {n}" for n in explain.notes)
    return "\n".join(lines) + "\n"


def export_markdown(
    assessment: Assessment,
    output_path: Path,
) -> Path:
    """Export the incident brief as Markdown."""
    output_path.write_text(render_brief_markdown(assessment), encoding="utf-8")
    return output_path

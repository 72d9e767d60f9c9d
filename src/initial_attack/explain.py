"""Plain-text explanation of one action card and the model inputs behind it."""

from __future__ import annotations

from initial_attack.models import ActionCard, RiskScore, SpreadExplain


def explain_decision(card: ActionCard, risk: RiskScore, spread: SpreadExplain) -> list[str]:
    lines = [
        f"--- {card.type.upper()}: {card.title} ---",
        f"Confidence: {card.confidence}",
        f"Timing: {card.timing}",
        "",
        "Why:",
    ]
    lines.extend(f"  {i}. {w}" for i, w in enumerate(card.why, start=1))

    b = risk.breakdown
    lines.extend(
        [
            "",
            f"Risk Score: {risk.total}/100 ({risk.label})",
            f"  Wind: {b.wind_severity}/100 | Humidity: {b.humidity_severity}/100 | "
            f"Time-to-Impact: {b.time_to_impact_severity}/100",
            "",
            f"Model: {spread.model}",
            f"Spread Rate: {spread.rate_kmh:.2f} km/h",
        ]
    )
    lines.extend(f"  - {note}" for note in spread.notes)
    return lines

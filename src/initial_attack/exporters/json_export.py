"""JSON exporter for assessment results."""

from __future__ import annotations

import json
from pathlib import Path

from initial_attack.pipeline import Assessment


def export_json(
    assessment: Assessment,
    output_path: Path,
    indent: int = 2,
) -> Path:
    """Export the full assessment to a JSON file."""
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(assessment.to_dict(), f, indent=indent, ensure_ascii=False)
    return output_path

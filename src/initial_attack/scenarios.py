"""Lookup over the built-in scenarios."""

from __future__ import annotations

from initial_attack.data.scenarios import SCENARIOS
from initial_attack.models import Scenario


def get_all_scenarios() -> list[Scenario]:
    return list(SCENARIOS)


def get_scenario_by_id(scenario_id: str) -> Scenario | None:
    return next((s for s in SCENARIOS if s.id == scenario_id), None)

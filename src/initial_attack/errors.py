"""Typed failures raised at the boundaries of the assessment pipeline.

Malformed input records are rejected by the pydantic schemas in
:mod:`initial_attack.schemas` with :class:`pydantic.ValidationError`.
"""

from __future__ import annotations


class InitialAttackError(Exception):
    """Base class for all initial-attack errors."""


class UpstreamUnavailableError(InitialAttackError):
    """An external data source (weather, satellite, registry) could not be reached."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        self.message = message
        super().__init__(f"{source} unavailable: {message}")

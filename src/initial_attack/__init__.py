"""Initial-attack decision support: clustering, spread, risk and recommendations."""

__version__ = "0.1.0"

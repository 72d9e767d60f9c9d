"""Upstream data-source fetchers: FIRMS, CAL FIRE and Open-Meteo."""

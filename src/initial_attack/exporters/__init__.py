"""Exporters for assessment results."""

from initial_attack.exporters.geojson_export import export_geojson
from initial_attack.exporters.json_export import export_json
from initial_attack.exporters.markdown_export import export_markdown

__all__ = ["export_geojson", "export_json", "export_markdown"]

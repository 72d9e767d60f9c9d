"""CLI interface using Typer."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from initial_attack import __version__
from initial_attack.cluster import cluster_hotspots
from initial_attack.config import CALIFORNIA_BBOX, InitialAttackConfig, OutputFormat
from initial_attack.data.scenarios import REFERENCE_WEATHER
from initial_attack.errors import InitialAttackError, UpstreamUnavailableError
from initial_attack.explain import explain_decision
from initial_attack.exporters import export_geojson, export_json, export_markdown
from initial_attack.fetchers.firms import fetch_firms_hotspots
from initial_attack.http import session_from_config
from initial_attack.models import WindShift
from initial_attack.pipeline import Assessment, assess_scenario, load_live_weather
from initial_attack.scenarios import get_all_scenarios, get_scenario_by_id

Exporter = Callable[[Assessment, Path], Path]

EXPORTERS: dict[str, Exporter] = {
    "json": export_json,
    "geojson": export_geojson,
    "markdown": export_markdown,
}

app = typer.Typer(
    name="initial-attack",
    help="Explainable decision support for wildfire initial attack.",
    add_completion=False,
)
console = Console()

_LABEL_STYLE = {
    "low": "[green]low[/green]",
    "moderate": "[yellow]moderate[/yellow]",
    "high": "[dark_orange]high[/dark_orange]",
    "extreme": "[red]extreme[/red]",
}


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"initial-attack {__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[logging.StreamHandler()],
    )


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Initial Attack: spread envelopes, risk and action cards for the first hours of a fire."""


@app.command()
def scenarios() -> None:
    """List the built-in scenarios."""
    table = Table(title="Scenarios")
    table.add_column("ID", style="bold", no_wrap=True)
    table.add_column("Name")
    table.add_column("Fuel", style="dim")
    table.add_column("Assets", justify="right")
    table.add_column("Wind shift")

    for s in get_all_scenarios():
        shift = s.default_wind_shift
        shift_display = (
            f"+{shift.at_minutes:g}m -> {shift.new_dir_deg:g} deg"
            if shift is not None and shift.enabled
            else "-"
        )
        table.add_row(s.id, s.name, s.incident.fuel_proxy, str(len(s.assets)), shift_display)
    console.print(table)


@app.command()
def assess(
    scenario_id: Annotated[
        str,
        typer.Option("--scenario", "-s", help="Scenario id (see 'scenarios')."),
    ],
    wind_speed: Annotated[
        float | None,
        typer.Option("--wind-speed", min=0.0, help="Override wind speed (m/s)."),
    ] = None,
    wind_dir: Annotated[
        float | None,
        typer.Option("--wind-dir", min=0.0, max=360.0, help="Override wind direction (deg, from)."),
    ] = None,
    humidity: Annotated[
        float | None,
        typer.Option("--humidity", min=0.0, max=100.0, help="Override relative humidity (%)."),
    ] = None,
    wind_shift_at: Annotated[
        float | None,
        typer.Option("--wind-shift-at", min=0.0, help="Minutes from now when the wind shifts."),
    ] = None,
    wind_shift_dir: Annotated[
        float | None,
        typer.Option("--wind-shift-dir", min=0.0, max=360.0, help="Post-shift wind direction."),
    ] = None,
    no_wind_shift: Annotated[
        bool,
        typer.Option("--no-wind-shift", help="Ignore the scenario's default wind shift."),
    ] = False,
    live_weather: Annotated[
        bool,
        typer.Option("--live-weather", help="Fetch current weather from Open-Meteo."),
    ] = False,
    horizon: Annotated[
        int,
        typer.Option("--horizon", min=1, max=12, help="Hours of spread to project."),
    ] = 3,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the assessment to this file."),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format: json, geojson, markdown."),
    ] = "json",
    explain: Annotated[
        bool,
        typer.Option("--explain", "-e", help="Print the reasoning behind each action card."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
) -> None:
    """Run one assessment cycle for a scenario and print the action cards."""
    _setup_logging(verbose)

    scenario = get_scenario_by_id(scenario_id)
    if scenario is None:
        console.print(f"[red]Unknown scenario:[/red] {scenario_id}")
        raise typer.Exit(code=1)

    config = InitialAttackConfig(horizon_hours=horizon, output_format=output_format)
    weather = REFERENCE_WEATHER
    if live_weather:
        fetched = load_live_weather(scenario.incident, config, session=session_from_config(config))
        if fetched is None:
            console.print("[yellow]Live weather unavailable, using reference conditions.[/yellow]")
        else:
            weather = fetched

    overrides = {
        name: value
        for name, value in (
            ("wind_speed_mps", wind_speed),
            ("wind_dir_deg", wind_dir),
            ("humidity_pct", humidity),
        )
        if value is not None
    }
    if overrides:
        weather = replace(weather, **overrides)

    wind_shift = None
    if no_wind_shift:
        wind_shift = WindShift(enabled=False, at_minutes=0, new_dir_deg=weather.wind_dir_deg)
    elif wind_shift_at is not None or wind_shift_dir is not None:
        base = scenario.default_wind_shift
        wind_shift = WindShift(
            enabled=True,
            at_minutes=wind_shift_at if wind_shift_at is not None else (base.at_minutes if base else 60),
            new_dir_deg=(
                wind_shift_dir
                if wind_shift_dir is not None
                else (base.new_dir_deg if base else weather.wind_dir_deg)
            ),
        )

    try:
        assessment = assess_scenario(scenario, weather, wind_shift, config.horizon_hours)
    except InitialAttackError as exc:
        console.print(f"[red]Assessment failed:[/red] {exc}")
        raise typer.Exit(code=1) from None

    rec = assessment.recommendations
    risk = rec.risk_score
    console.print()
    console.print(f"[bold]{scenario.incident.name}[/bold]")
    console.print(rec.brief.one_liner)
    console.print(
        f"Risk: [bold]{risk.total}/100[/bold] {_LABEL_STYLE[risk.label]}  "
        f"Spread: {assessment.spread.explain.rate_kmh:.2f} km/h"
    )

    table = Table(title="Action Cards")
    table.add_column("Card", style="bold")
    table.add_column("Title")
    table.add_column("Timing", style="dim")
    table.add_column("Confidence")
    for card in rec.cards:
        table.add_row(card.type, card.title, card.timing, card.confidence)
    console.print(table)

    for trigger in rec.brief.key_triggers:
        console.print(f"  trigger: {trigger}")

    if explain:
        for card in rec.cards:
            console.print()
            for line in explain_decision(card, risk, assessment.spread.explain):
                console.print(line, markup=False, highlight=False)

    if output is not None:
        EXPORTERS[config.output_format](assessment, output)
        console.print(f"\n{config.output_format.upper()} written to [bold]{output}[/bold]")


@app.command()
def hotspots(
    bbox: Annotated[
        str,
        typer.Option("--bbox", help="Area as 'west,south,east,north'."),
    ] = CALIFORNIA_BBOX,
    days: Annotated[
        int,
        typer.Option("--days", "-d", min=1, max=10, help="Days of detections."),
    ] = 1,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", min=1, help="Maximum clusters to show."),
    ] = 15,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
) -> None:
    """Fetch live FIRMS detections and show them clustered into fire events."""
    _setup_logging(verbose)
    config = InitialAttackConfig(firms_bbox=bbox, firms_days=days)

    try:
        detections = fetch_firms_hotspots(
            config.firms_map_key,
            sources=config.firms_sources,
            bbox=config.firms_bbox,
            days=config.firms_days,
            timeout=config.request_timeout,
            session=session_from_config(config),
        )
    except UpstreamUnavailableError as exc:
        console.print(f"[red]{exc}[/red] (set INITIAL_ATTACK_FIRMS_MAP_KEY)")
        raise typer.Exit(code=1) from None

    clusters = cluster_hotspots(detections, eps_meters=config.cluster_eps_meters)
    if not clusters:
        console.print("[yellow]No hotspots detected in the area.[/yellow]")
        raise typer.Exit()

    table = Table(title=f"FIRMS Clusters ({len(detections)} detections)")
    table.add_column("ID", style="bold", no_wrap=True)
    table.add_column("Lat", justify="right")
    table.add_column("Lon", justify="right")
    table.add_column("Points", justify="right")
    table.add_column("Total FRP", justify="right", style="red")
    table.add_column("Radius (m)", justify="right")
    table.add_column("Last seen", style="dim")
    for c in clusters[:limit]:
        table.add_row(
            c.id,
            f"{c.centroid_lat:.3f}",
            f"{c.centroid_lon:.3f}",
            str(c.point_count),
            f"{c.total_frp:.1f}",
            str(c.radius_meters),
            c.last_seen,
        )
    console.print(table)

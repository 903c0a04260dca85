import logging
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

from windsurf_forecast.config.loader import load_file_source, persist
from windsurf_forecast.config.resolver import resolve
from windsurf_forecast.config.timezone import check_zone_matches_coordinates
from windsurf_forecast.config.types import OverrideSource
from windsurf_forecast.domain.errors import ForecastError
from windsurf_forecast.hub import backend_registry
from windsurf_forecast.hub.forecast_hub import ForecastHub
from windsurf_forecast.infra.logging_utils import configure_logging
from windsurf_forecast.infra.output import render_report, report_filename, write_report

app = typer.Typer(help="Fetch windsurf forecast data from interchangeable weather backends")

_EXAMPLES = """
Examples:

  windsurf-forecast forecast --lat 32.49 --lng 34.89             4-day forecast starting today

  windsurf-forecast forecast --days-ahead 2 --first-day-offset 3  2 days starting in 3 days

  windsurf-forecast forecast --tz Europe/London --save            remember timezone and location

Note: days-ahead + first-day-offset must not exceed 7 to ensure reliable forecasts.
"""


@app.callback()
def cli_root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr"),
):
    configure_logging(logging.INFO if verbose else logging.WARNING)


@app.command("forecast", epilog=_EXAMPLES)
def cli_forecast(
    days_ahead: Optional[int] = typer.Option(None, "--days-ahead", help="Number of days to forecast ahead (1-7, default 4)"),
    first_day_offset: Optional[int] = typer.Option(
        None, "--first-day-offset", help="Days to offset the start date (0-7, 0 for today)"
    ),
    provider: Optional[str] = typer.Option(None, "--provider", help="Weather backend to use (see 'providers')"),
    timezone: Optional[str] = typer.Option(
        None, "--timezone", "--tz", help="IANA timezone for output timestamps, or LOCAL for the system zone"
    ),
    lat: Optional[float] = typer.Option(None, "--lat", help="Latitude (-90 to 90)"),
    lng: Optional[float] = typer.Option(None, "--lng", help="Longitude (-180 to 180)"),
    config: Optional[Path] = typer.Option(None, "--config", help="Config file path (default ~/.windsurf-config.toml)"),
    save: bool = typer.Option(False, "--save", help="Save the resolved settings to the config file after a successful run"),
    output_dir: Path = typer.Option(Path("."), "--output-dir", help="Directory for the JSON report"),
):
    """Fetch a forecast, write it as JSON and print it."""
    registry = backend_registry.initialize()
    overrides = OverrideSource(
        provider=provider,
        timezone=timezone,
        lat=lat,
        lng=lng,
        days_ahead=days_ahead,
        first_day_offset=first_day_offset,
    )
    try:
        resolved = resolve(overrides, load_file_source(config), registry=registry)
        detected = check_zone_matches_coordinates(resolved.timezone, resolved.lat, resolved.lng)
        if detected:
            typer.echo(
                f"WARNING: Timezone mismatch detected! Configured timezone: {resolved.timezone.key}. "
                f"Detected timezone at coordinates ({resolved.lat}, {resolved.lng}): {detected}. "
                "This may cause incorrect timestamp displays.",
                err=True,
            )
        report = ForecastHub(registry).run(resolved)
        path = write_report(report, output_dir / report_filename(resolved.days_ahead, report.meta.start))
    except ForecastError as exc:
        _print_error(exc)
        raise typer.Exit(code=1)

    typer.echo(render_report(report))
    typer.echo(f"Loaded {len(report.hours)} hourly data points into {path}", err=True)
    if save:
        try:
            saved = persist(resolved, config)
        except ForecastError as exc:
            _print_error(exc)
            raise typer.Exit(code=1)
        typer.echo(f"✓ Configuration saved to {saved}", err=True)


@app.command("providers")
def cli_providers():
    """List the available weather backends."""
    registry = backend_registry.initialize()
    for name, description in registry.descriptions():
        descriptor = registry.lookup(name)
        typer.echo(f"{name}\t{description}\t({descriptor.credential_var})")


def _print_error(exc: Exception) -> None:
    rule = "=" * 70
    typer.echo(f"\n{rule}\nERROR\n{rule}\n\n{exc}\n\n{rule}", err=True)


def main() -> None:
    load_dotenv()
    configure_logging()
    # Duplicate backend names abort here, before any argument is parsed.
    backend_registry.initialize()
    app()


if __name__ == "__main__":
    main()

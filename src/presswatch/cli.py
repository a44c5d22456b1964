"""
Command-line interface for presswatch.

Provides commands for summarizing telemetry exports, listing devices,
exporting reports and managing alert thresholds.
"""

import logging
import sys

from datetime import datetime
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path

import click

from pydantic import ValidationError

from presswatch.analysis.service import DashboardMetrics, MetricsService
from presswatch.config import (
    THRESHOLDS_SECTION,
    get_config_path,
    load_config,
    load_thresholds,
    reset_thresholds,
    set_threshold,
)
from presswatch.constants import DataShape
from presswatch.filtering import filter_dataset, list_devices, list_locations
from presswatch.logging_config import setup_logging
from presswatch.models.filters import ALL, DateWindow, FilterCriteria, TimeRange
from presswatch.models.records import LongDataset, WideDataset
from presswatch.models.thresholds import AlertThresholds
from presswatch.parsers.base import IngestError
from presswatch.reporting import export_report_json, generate_report
from presswatch.store import TelemetryStore

logger = logging.getLogger(__name__)

try:
    __version__ = get_version("presswatch")
except PackageNotFoundError:
    __version__ = "dev"

TIME_RANGE_CHOICES = [r.value for r in TimeRange]
SHAPE_CHOICES = [s.value for s in DataShape]

csv_file_argument = click.argument(
    "csv_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
shape_option = click.option(
    "--shape",
    type=click.Choice(SHAPE_CHOICES),
    help="Force the CSV layout instead of detecting it from the header",
)


def load_dataset(csv_file: Path, shape: str | None) -> WideDataset | LongDataset:
    """
    Ingest a CSV file.

    Raises:
        click.ClickException: If ingestion fails
    """
    store = TelemetryStore()
    try:
        return store.load(
            csv_file,
            shape=DataShape(shape) if shape else None,
            on_progress=lambda p: logger.debug(f"Loading {csv_file.name}: {p:.0f}%"),
        )
    except IngestError as e:
        raise click.ClickException(f"Failed to load {csv_file}: {e}") from e


def build_criteria(
    device: str,
    location: str,
    time_range: str,
    start: datetime | None,
    end: datetime | None,
) -> FilterCriteria:
    """
    Build filter criteria from command options.

    An explicit --start/--end window takes precedence over --range.

    Raises:
        click.BadParameter: If only one window bound is given or start > end
    """
    if start is None and end is None:
        return FilterCriteria(device=device, location=location, time_range=TimeRange(time_range))

    if start is None or end is None:
        raise click.BadParameter("--start and --end must be given together")

    try:
        window = DateWindow(start=start, end=end)
    except ValidationError as e:
        raise click.BadParameter(e.errors()[0]["msg"]) from None
    return FilterCriteria(device=device, location=location, time_range=window)


def compute_metrics(
    dataset: WideDataset | LongDataset,
    criteria: FilterCriteria,
    thresholds: AlertThresholds,
) -> DashboardMetrics:
    """Filter a dataset and compute all metrics; lifetime uses the full history."""
    filtered = filter_dataset(dataset, criteria)
    history = filter_dataset(dataset, criteria.model_copy(update={"time_range": TimeRange.ALL}))
    return MetricsService(thresholds).compute(filtered, criteria.time_range, history)


def filter_options(func):
    """Device, location and time window options shared by analysis commands."""
    func = click.option(
        "--end",
        type=click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"]),
        help="Window end (inclusive, UTC)",
    )(func)
    func = click.option(
        "--start",
        type=click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"]),
        help="Window start (inclusive, UTC)",
    )(func)
    func = click.option(
        "--range",
        "time_range",
        type=click.Choice(TIME_RANGE_CHOICES),
        default=TimeRange.ALL.value,
        show_default=True,
        help="Relative window ending at the newest record",
    )(func)
    func = click.option("--location", default=ALL, show_default=True, help="Location name")(func)
    func = click.option("--device", default=ALL, show_default=True, help="Device id")(func)
    return func


def version_callback(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    """Show version."""
    if not value or ctx.resilient_parsing:
        return
    click.echo(f"presswatch, version {__version__}")
    ctx.exit()


@click.group()
@click.option(
    "--version",
    is_flag=True,
    callback=version_callback,
    expose_value=False,
    is_eager=True,
    help="Show version",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool) -> None:
    """presswatch: Press Telemetry Analysis Tool"""
    setup_logging(verbose=verbose)


@cli.command()
@csv_file_argument
@shape_option
def devices(csv_file: Path, shape: str | None) -> None:
    """List devices and locations in a telemetry export."""
    dataset = load_dataset(csv_file, shape)

    device_ids = list_devices(dataset)
    click.echo(f"Shape: {dataset.shape}")
    click.echo(f"Devices ({len(device_ids)}):")
    for device_id in device_ids:
        click.echo(f"  {device_id}")

    locations = list_locations(dataset)
    if locations:
        click.echo(f"Locations ({len(locations)}):")
        for location in locations:
            click.echo(f"  {location}")

    if dataset.dropped_rows:
        click.echo(f"\n{dataset.dropped_rows} row(s) skipped (missing or invalid values)")


@cli.command()
@csv_file_argument
@shape_option
@filter_options
@click.option("--json", "as_json", is_flag=True, help="Print all metrics as JSON")
def summary(
    csv_file: Path,
    shape: str | None,
    device: str,
    location: str,
    time_range: str,
    start: datetime | None,
    end: datetime | None,
    as_json: bool,
) -> None:
    """Summarize fleet KPIs for a telemetry export."""
    criteria = build_criteria(device, location, time_range, start, end)
    dataset = load_dataset(csv_file, shape)
    metrics = compute_metrics(dataset, criteria, load_thresholds())

    if as_json:
        click.echo(metrics.model_dump_json(indent=2))
        return

    fleet = metrics.fleet
    if fleet.total_cycles == 0:
        click.echo("No cycles match the selection")
        return

    click.echo(f"\n{'Metric':<28} {'Value':>12}")
    click.echo("=" * 41)
    rows = [
        ("Devices", f"{fleet.unique_devices}"),
        ("Cycles", f"{fleet.total_cycles}"),
        ("Runtime (h)", f"{fleet.total_runtime_hours:.1f}"),
        ("Utilization (%)", f"{fleet.utilization_rate:.1f}"),
        ("Error rate (%)", f"{fleet.error_rate:.1f}"),
        ("E-stops", f"{fleet.e_stop_count}"),
        ("Energy (kWh)", f"{fleet.total_energy_kwh:.1f}"),
        ("Baseline cycle (s)", f"{metrics.cycles.baseline_s:.2f}"),
        ("Drifting cycles", f"{metrics.cycles.drifting_count}"),
        ("Anomalous cycles", f"{metrics.anomalies.count}"),
        ("MTBF (h)", f"{metrics.lifetime.mtbf_hours:.1f}"),
        ("MTTR (min)", f"{metrics.lifetime.mttr_minutes:.1f}"),
        ("Remaining life (%)", f"{metrics.lifetime.rul_pct:.1f}"),
    ]
    for label, value in rows:
        click.echo(f"{label:<28} {value:>12}")

    top = metrics.rankings.top_performers
    if top:
        click.echo(f"\n{'Device':<20} {'Runtime (h)':>12} {'Cycles':>8} {'Errors':>8}  Status")
        click.echo("=" * 60)
        for ranking in top:
            click.echo(
                f"{ranking.device_id:<20} {ranking.runtime_hours:>12.1f} "
                f"{ranking.cycles:>8} {ranking.error_count:>8}  {ranking.status}"
            )


@cli.command()
@csv_file_argument
@shape_option
@filter_options
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Directory for the report file",
)
def report(
    csv_file: Path,
    shape: str | None,
    device: str,
    location: str,
    time_range: str,
    start: datetime | None,
    end: datetime | None,
    output_dir: Path,
) -> None:
    """Export a JSON telemetry report with maintenance recommendations."""
    criteria = build_criteria(device, location, time_range, start, end)
    dataset = load_dataset(csv_file, shape)
    thresholds = load_thresholds()
    metrics = compute_metrics(dataset, criteria, thresholds)

    telemetry_report = generate_report(
        device,
        metrics.fleet,
        metrics.anomalies,
        metrics.safety,
        metrics.voltage_sags,
        metrics.lifetime,
        thresholds=thresholds,
    )

    output_dir.mkdir(parents=True, exist_ok=True)
    path = export_report_json(telemetry_report, output_dir)
    click.echo(f"✓ Report written to {path}")

    for recommendation in telemetry_report.recommendations:
        click.echo(f"  • {recommendation}")


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("show")
def show_config_cmd() -> None:
    """Show all configuration settings."""
    config_path = get_config_path()
    click.echo(f"Config file: {config_path}")
    if not config_path.exists():
        click.echo("(File does not exist yet, using defaults)")

    overrides = load_config().get(THRESHOLDS_SECTION, {})
    thresholds = load_thresholds()

    click.echo("\n[thresholds]")
    for name, value in thresholds.model_dump().items():
        marker = "" if name in overrides else "  (default)"
        click.echo(f"  {name} = {value}{marker}")


@config.command("set-threshold")
@click.argument("name", type=click.Choice(list(AlertThresholds.model_fields)))
@click.argument("value", type=float)
def set_threshold_cmd(name: str, value: float) -> None:
    """Override one alert threshold."""
    try:
        thresholds = set_threshold(name, value)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"✓ {name} = {getattr(thresholds, name)}")
    click.echo(f"  Config: {get_config_path()}")


@config.command("reset-thresholds")
def reset_thresholds_cmd() -> None:
    """Remove all threshold overrides."""
    reset_thresholds()
    click.echo("✓ Thresholds reset to defaults")


@cli.group()
def logs() -> None:
    """Log file management commands."""
    pass


@logs.command("path")
def logs_path() -> None:
    """Show log file location."""
    from presswatch.logging_config import get_log_path

    log_path = get_log_path()
    click.echo(f"Log file: {log_path}")

    if log_path.exists():
        size_mb = log_path.stat().st_size / (1024 * 1024)
        click.echo(f"Size: {size_mb:.2f} MB")
    else:
        click.echo("(File does not exist yet)")


@logs.command("show")
@click.option("--lines", "-n", type=int, default=50, help="Number of lines to show")
def logs_show(lines: int) -> None:
    """Show recent log entries."""
    from presswatch.logging_config import get_log_path

    log_path = get_log_path()

    if not log_path.exists():
        click.echo("No log file found", err=True)
        sys.exit(1)

    with open(log_path, encoding="utf-8") as f:
        all_lines = f.readlines()
    for line in all_lines[-lines:]:
        click.echo(line.rstrip())


def main() -> None:
    """Main CLI entry point."""
    cli()


if __name__ == "__main__":
    main()

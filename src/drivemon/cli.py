"""
Command-line interface for drivemon.

Provides commands for replaying recorded trips through the detection engine
and managing calibration settings.
"""

import logging

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Any

import click

from drivemon.analysis.calibration import AVAILABLE_CONFIGS, DEFAULT_MODE, Thresholds
from drivemon.analysis.processor import DrivingDataProcessor
from drivemon.analysis.summaries import format_event, generate_session_summary
from drivemon.analysis.types import DrivingEvent, EnrichedSample, EventCounters
from drivemon.config import (
    get_config_path,
    get_detection_mode,
    get_speed_limit_overrides,
    get_threshold_overrides,
    load_detection_config,
    set_detection_mode,
    set_threshold_override,
    unset_threshold_override,
)
from drivemon.constants import ParticipantGroup
from drivemon.ingest import SampleMerger, load_readings
from drivemon.logging_config import setup_logging

logger = logging.getLogger(__name__)

try:
    __version__ = get_version("drivemon")
except PackageNotFoundError:
    __version__ = "dev"


@click.group()
@click.version_option(__version__, prog_name="drivemon")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool) -> None:
    """drivemon: aggressive driving event detection."""
    setup_logging(verbose=verbose)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--mode", help="Calibration preset (default: configured mode)")
@click.option(
    "--record-interval",
    type=click.FloatRange(min=0),
    help="Minimum milliseconds between accepted samples",
)
@click.option("--participant", help="Participant id for readings that lack one")
@click.option(
    "--group",
    type=click.Choice([g.value for g in ParticipantGroup]),
    help="Study group for readings that lack one",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write session statistics JSON to this file",
)
@click.option("--json", "as_json", is_flag=True, help="Print statistics as JSON")
@click.option("--show-events", is_flag=True, help="Print each event as detected")
def replay(
    path: Path,
    mode: str | None,
    record_interval: float | None,
    participant: str | None,
    group: str | None,
    output: Path | None,
    as_json: bool,
    show_events: bool,
) -> None:
    """Replay a recorded trip (JSON Lines, JSON or CSV) through the detector."""
    try:
        detection_config = load_detection_config(mode)
        if record_interval is not None:
            detection_config = detection_config.with_overrides(
                record_interval=record_interval
            )
        readings = load_readings(path)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    processor = DrivingDataProcessor(detection_config)
    if show_events:

        def echo_event(
            event: DrivingEvent, counters: EventCounters, sample: EnrichedSample
        ) -> None:
            click.echo(format_event(event))

        processor.on_event(echo_event)

    merger = SampleMerger()
    samples: list[EnrichedSample] = []
    rejected = 0

    for reading in merger.merge_all(readings):
        _apply_defaults(reading, participant, group)
        result = processor.process_sample(reading)
        if result is None:
            rejected += 1
            continue
        samples.append(result.enriched)

    logger.info(
        f"Replayed {len(readings)} readings: {len(samples)} accepted, {rejected} dropped"
    )

    if not samples:
        raise click.ClickException(
            f"No samples accepted from {path}. Check timestamps and participant ids "
            "(use --participant for recordings without one)."
        )

    stats = processor.generate_session_stats(samples)
    stats_json = stats.model_dump_json(indent=2)

    if output:
        output.write_text(stats_json + "\n", encoding="utf-8")
        click.echo(f"Session statistics written to {output}", err=True)

    if as_json:
        click.echo(stats_json)
    else:
        click.echo(f"Calibration: {detection_config.name}")
        click.echo(generate_session_summary(stats))


def _apply_defaults(
    reading: dict[str, Any], participant: str | None, group: str | None
) -> None:
    if participant and "participant_id" not in reading and "participante" not in reading:
        reading["participant_id"] = participant
    if group and "group" not in reading and "grupo" not in reading:
        reading["group"] = group


@cli.command()
def modes() -> None:
    """List calibration presets and their thresholds."""
    active = get_detection_mode()
    for name, preset in AVAILABLE_CONFIGS.items():
        marker = "*" if name == active else " "
        suffix = " (default)" if name == DEFAULT_MODE else ""
        click.echo(f"{marker} {name}{suffix}: {preset.description}")
        for key, value in preset.thresholds.model_dump().items():
            click.echo(f"      {key} = {value}")
        click.echo(f"      record_interval = {preset.record_interval}")
        click.echo(f"      accel_only_detection = {preset.accel_only_detection}")


@cli.group()
def config() -> None:
    """Manage drivemon configuration."""


@config.command("show")
def config_show() -> None:
    """Show the effective configuration."""
    click.echo(f"Config file: {get_config_path()}")
    try:
        effective = load_detection_config()
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    click.echo(f"Mode: {effective.name}")
    overrides = get_threshold_overrides()
    click.echo("Thresholds:")
    for key, value in effective.thresholds.model_dump().items():
        note = " (override)" if key in overrides else ""
        click.echo(f"  {key} = {value}{note}")

    limit_overrides = get_speed_limit_overrides()
    click.echo("Speed limits (km/h):")
    for key, value in effective.speed_limits.model_dump().items():
        note = " (override)" if key in limit_overrides else ""
        click.echo(f"  {key} = {value}{note}")


@config.command("set-mode")
@click.argument("name")
def config_set_mode(name: str) -> None:
    """Set the calibration preset used by default."""
    try:
        set_detection_mode(name)
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Detection mode set to '{name}'")


@config.command("set-threshold")
@click.argument("name", type=click.Choice(list(Thresholds.model_fields)))
@click.argument("value", type=float)
def config_set_threshold(name: str, value: float) -> None:
    """Override a single detection threshold."""
    try:
        set_threshold_override(name, value)
    except ValueError as e:
        raise click.ClickException(f"Invalid threshold: {e}") from e
    click.echo(f"Threshold {name} set to {value}")


@config.command("unset-threshold")
@click.argument("name")
def config_unset_threshold(name: str) -> None:
    """Remove a threshold override."""
    if unset_threshold_override(name):
        click.echo(f"Threshold override {name} removed")
    else:
        click.echo(f"No override set for {name}")

# src/chipqc/cli.py
"""chipqc Command Line Interface.

Entry point for the chipqc CLI tool.

Exit codes of ``chipqc run``:
    0: test completed and every planned channel was reached
    1: configuration error, fatal run error, or interrupted run
    2: test completed with failed channels
"""

from __future__ import annotations

import json
import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Literal

import typer
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from chipqc import __version__
from chipqc.cli_formatters import (
    create_console_formatters,
    create_json_formatters,
    format_result,
    format_route,
    subscribe_formatters,
)
from chipqc.contracts.enums import RunStatus
from chipqc.contracts.errors import ChipDefinitionError, NoPathError
from chipqc.contracts.events import RunStarted
from chipqc.contracts.results import ChipTestResult
from chipqc.contracts.types import ChannelID
from chipqc.core.chip import ChipDefinition, load_chip
from chipqc.core.config import ChipQCSettings, load_settings
from chipqc.core.events import EventBus
from chipqc.core.planner import create_channel_plan, rotate_waypoints
from chipqc.engine.executor import RunContext, TransferExecutor
from chipqc.engine.retry import HopRetryConfig
from chipqc.hardware.alerts import LogAlerter, TerminalBell
from chipqc.hardware.protocols import Alerter
from chipqc.hardware.simulated import SimulatedChip
from chipqc.reporting.jsonl import JsonlEventWriter, read_event_log
from chipqc.reporting.log import EventLog
from chipqc.reporting.summary import summarize

__all__ = [
    "app",
    "load_settings",  # Re-exported from config for convenience
]

EXIT_CHANNELS_FAILED = 2

app = typer.Typer(
    name="chipqc",
    help="chipqc: Quality-control testing for digital-microfluidic chips.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"chipqc version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """chipqc: Quality-control testing for digital-microfluidic chips."""
    from chipqc.core.logging import configure_logging

    log_level = "DEBUG" if verbose else "INFO"
    configure_logging(json_output=json_logs, level=log_level)


def _load_settings_or_exit(settings: str) -> ChipQCSettings:
    settings_path = Path(settings).expanduser()
    try:
        return load_settings(settings_path)
    except (YamlParserError, YamlScannerError) as e:
        typer.echo(f"YAML syntax error in {settings}: {e.problem}", err=True)
        raise typer.Exit(1) from None
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


def _load_chip_or_exit(config: ChipQCSettings) -> ChipDefinition:
    try:
        return load_chip(config.chip.path, bad_channels=config.chip.bad_channels)
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    except ChipDefinitionError as e:
        typer.echo(f"Chip definition error: {e}", err=True)
        raise typer.Exit(1) from None


def resolve_waypoints(config: ChipQCSettings, chip: ChipDefinition) -> list[ChannelID]:
    """Waypoints of the configured route, rotated to the configured start.

    Raises:
        ChipDefinitionError: If ``test_route`` names a route the chip lacks
        ValueError: If the start channel is not one of the waypoints
    """
    route = config.route
    waypoints = route.waypoints if route.waypoints is not None else chip.waypoints(route.test_route or "")
    return rotate_waypoints(waypoints, start=route.start)


def _plan_or_exit(config: ChipQCSettings, chip: ChipDefinition) -> tuple[list[ChannelID], list[ChannelID]]:
    try:
        waypoints = resolve_waypoints(config, chip)
        channel_plan = create_channel_plan(chip.graph, waypoints, loop=config.route.loop)
    except (ChipDefinitionError, ValueError) as e:
        typer.echo(f"Route error: {e}", err=True)
        raise typer.Exit(1) from None
    except NoPathError as e:
        typer.echo(f"Planning error: {e}", err=True)
        raise typer.Exit(1) from None
    return waypoints, channel_plan


@contextmanager
def _interrupt_handler_context() -> Iterator[threading.Event]:
    """Install SIGINT/SIGTERM handlers that request cancellation.

    The first signal sets the event and the run stops at the next hop
    boundary; a second Ctrl-C raises KeyboardInterrupt. Outside the main
    thread no handlers are installed.
    """
    cancel_event = threading.Event()

    if threading.current_thread() is not threading.main_thread():
        yield cancel_event
        return

    original_sigint = signal.getsignal(signal.SIGINT)
    original_sigterm = signal.getsignal(signal.SIGTERM)

    def _handler(signum: int, frame: Any) -> None:
        cancel_event.set()
        signal.signal(signal.SIGINT, signal.default_int_handler)

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)
    try:
        yield cancel_event
    finally:
        signal.signal(signal.SIGINT, original_sigint)
        signal.signal(signal.SIGTERM, original_sigterm)


@app.command()
def plan(
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    output_format: Literal["console", "json"] = typer.Option(
        "console",
        "--format",
        "-f",
        help="Output format: 'console' (human-readable) or 'json' (structured).",
    ),
) -> None:
    """Plan the test route and print the channel plan."""
    config = _load_settings_or_exit(settings)
    chip = _load_chip_or_exit(config)
    waypoints, channel_plan = _plan_or_exit(config, chip)

    if output_format == "json":
        typer.echo(
            json.dumps(
                {
                    "way_points": waypoints,
                    "channel_plan": channel_plan,
                    "excluded_channels": list(chip.excluded_channels),
                }
            )
        )
        return

    typer.echo(f"Chip: {chip.graph.channel_count} channels, {chip.graph.connection_count} connections")
    if chip.excluded_channels:
        typer.echo(f"Excluded channels: {', '.join(str(c) for c in chip.excluded_channels)}")
    typer.echo(f"Waypoints: {', '.join(str(w) for w in waypoints)}")
    typer.echo(f"Channel plan ({len(channel_plan)} channels, {len(channel_plan) - 1} hops):")
    typer.echo(f"  {format_route(channel_plan)}")


@app.command()
def run(
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    output_format: Literal["console", "json"] = typer.Option(
        "console",
        "--output",
        "-o",
        help="Output format: 'console' (human-readable) or 'json' (one event per line).",
    ),
    event_log: Path | None = typer.Option(
        None,
        "--event-log",
        "-l",
        help="Write events to this JSONL file, replacing it (overrides event_log.path).",
    ),
    bell: bool = typer.Option(
        False,
        "--bell",
        help="Ring the terminal bell on electrode failures and completion.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show every successful hop.",
    ),
) -> None:
    """Run the chip test against the simulated chip."""
    config = _load_settings_or_exit(settings)
    chip = _load_chip_or_exit(config)
    waypoints, channel_plan = _plan_or_exit(config, chip)

    event_bus = EventBus()
    formatters = create_json_formatters() if output_format == "json" else create_console_formatters(verbose=verbose)
    subscribe_formatters(event_bus, formatters)

    mover = SimulatedChip(
        chip.graph,
        dead_channels=config.simulation.dead_channels,
        flaky_channels=config.simulation.flaky_channels,
        position=channel_plan[0],
    )
    alerter: Alerter = TerminalBell() if bell else LogAlerter()
    log_path = event_log if event_log is not None else config.event_log.path
    log = EventLog()

    try:
        result = _execute(
            chip,
            channel_plan,
            waypoints,
            log=log,
            mover=mover,
            alerter=alerter,
            retry=HopRetryConfig.from_settings(config.retry),
            event_bus=event_bus,
            log_path=log_path,
        )
    except Exception as e:
        if output_format == "console":
            typer.echo(f"Error during chip test: {e}", err=True)
        _echo_partial_result(log, output_format)
        raise typer.Exit(1) from None

    if result.status == RunStatus.INTERRUPTED:
        raise typer.Exit(1)
    if result.failed_electrodes:
        raise typer.Exit(EXIT_CHANNELS_FAILED)


def _execute(
    chip: ChipDefinition,
    channel_plan: list[ChannelID],
    waypoints: list[ChannelID],
    *,
    log: EventLog,
    mover: SimulatedChip,
    alerter: Alerter,
    retry: HopRetryConfig,
    event_bus: EventBus,
    log_path: Path | None,
) -> ChipTestResult:
    context = RunContext.create(chip.graph, channel_plan, way_points=waypoints, event_bus=event_bus, log=log)
    with _interrupt_handler_context() as cancel_event:
        executor = TransferExecutor(context, mover, retry, alerter=alerter, cancel_event=cancel_event)
        if log_path is None:
            return executor.run()
        with JsonlEventWriter(log_path) as writer:
            log.add_sink(writer.write)
            return executor.run()


def _echo_partial_result(log: EventLog, output_format: str) -> None:
    """Print what an aborted run achieved before it stopped."""
    if not log.of_type(RunStarted):
        return
    result = summarize(log)
    if output_format == "json":
        typer.echo(json.dumps(result.to_dict()))
        return
    typer.echo("Partial result:")
    for line in format_result(result):
        typer.echo(line)
    typer.echo(f"  Success route: {format_route(result.success_route)}")


@app.command("summarize")
def summarize_log(
    log_file: Path = typer.Argument(..., help="JSONL event log written by 'chipqc run'."),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output the result as JSON.",
    ),
) -> None:
    """Summarize a persisted event log."""
    try:
        result = summarize(read_event_log(log_file))
    except FileNotFoundError:
        typer.echo(f"Error: Event log not found: {log_file}", err=True)
        raise typer.Exit(1) from None
    except ValueError as e:
        typer.echo(f"Error reading event log: {e}", err=True)
        raise typer.Exit(1) from None

    if json_output:
        typer.echo(json.dumps(result.to_dict()))
        return
    for line in format_result(result):
        typer.echo(line)
    if result.remaining_route:
        typer.echo(f"  Remaining route: {format_route(result.remaining_route)}")


if __name__ == "__main__":
    app()

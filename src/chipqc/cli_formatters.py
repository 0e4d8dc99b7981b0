# src/chipqc/cli_formatters.py
"""CLI event formatter factories for chip test output.

Provides factory functions that return event handler maps for console
(human-readable) and JSON (structured) output formats. Each factory
returns a dict mapping event types to handler callables, suitable for
subscribing to an EventBus.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence

import typer

from chipqc.contracts.events import (
    ElectrodeAttemptFailed,
    ElectrodeFailed,
    ElectrodeSkipped,
    ElectrodeSucceeded,
    RunAborted,
    RunCompleted,
    RunInterrupted,
    RunStarted,
)
from chipqc.contracts.results import ChipTestResult
from chipqc.contracts.types import ChannelID
from chipqc.core.events import EventBusProtocol
from chipqc.reporting.jsonl import event_to_record


def format_channels(channels: Sequence[ChannelID]) -> str:
    return ", ".join(str(c) for c in channels) if channels else "none"


def format_route(channels: Sequence[ChannelID]) -> str:
    return " → ".join(str(c) for c in channels)


def format_result(result: ChipTestResult) -> list[str]:
    """Human-readable lines for a test result."""
    symbol = "✓" if result.passed else "✗"
    return [
        f"{symbol} Test {result.status.value.upper()}: "
        f"{len(result.success_electrodes)} channel(s) reached | "
        f"{len(result.failed_electrodes)} failed | "
        f"{len(result.skipped_electrodes)} skipped",
        f"  Failed channels: {format_channels(result.failed_electrodes)}",
        f"  Skipped channels: {format_channels(result.skipped_electrodes)}",
    ]


def create_console_formatters(verbose: bool = False) -> dict[type, Callable[..., None]]:
    """Create console formatters for human-readable CLI output.

    Args:
        verbose: Also print every successful hop
    """

    def _format_started(event: RunStarted) -> None:
        typer.echo(
            f"[TEST] Starting route of {len(event.route)} channel(s) through waypoints {format_channels(event.way_points)}"
        )

    def _format_succeeded(event: ElectrodeSucceeded) -> None:
        if verbose:
            typer.echo(f"  {event.source} → {event.target} ✓ (attempt {event.attempt})")

    def _format_attempt_failed(event: ElectrodeAttemptFailed) -> None:
        typer.echo(f"  {event.source} → {event.target} timed out (attempt {event.attempt})")

    def _format_failed(event: ElectrodeFailed) -> None:
        typer.echo(f"  ✗ Channel {event.target} failed after {event.attempt} attempt(s); rerouting", err=True)

    def _format_skipped(event: ElectrodeSkipped) -> None:
        typer.echo(f"  ⚠ Channel {event.target} unreachable from {event.source}; skipped")

    def _format_completed(event: RunCompleted) -> None:
        symbol = "✓" if not event.failed_electrodes else "✗"
        typer.echo(
            f"\n{symbol} Test COMPLETED: {len(event.success_electrodes)} channel(s) reached | "
            f"✗{len(event.failed_electrodes)} failed ({format_channels(event.failed_electrodes)})"
        )

    def _format_interrupted(event: RunInterrupted) -> None:
        typer.echo(
            f"\n⚠ Test INTERRUPTED at channel {event.remaining_route[0]}: "
            f"{len(event.success_electrodes)} channel(s) reached | "
            f"{len(event.remaining_route) - 1} hop(s) remaining"
        )

    def _format_aborted(event: RunAborted) -> None:
        typer.echo(f"\n✗ Test ABORTED ({event.error_type}): {event.error}", err=True)

    return {
        RunStarted: _format_started,
        ElectrodeSucceeded: _format_succeeded,
        ElectrodeAttemptFailed: _format_attempt_failed,
        ElectrodeFailed: _format_failed,
        ElectrodeSkipped: _format_skipped,
        RunCompleted: _format_completed,
        RunInterrupted: _format_interrupted,
        RunAborted: _format_aborted,
    }


def create_json_formatters() -> dict[type, Callable[..., None]]:
    """Create JSON formatters for structured CLI output (one object per line)."""

    def _format_event_json(event: object) -> None:
        typer.echo(json.dumps(event_to_record(event)))

    def _format_aborted_json(event: RunAborted) -> None:
        typer.echo(json.dumps(event_to_record(event)), err=True)

    return {
        RunStarted: _format_event_json,
        ElectrodeSucceeded: _format_event_json,
        ElectrodeAttemptFailed: _format_event_json,
        ElectrodeFailed: _format_event_json,
        ElectrodeSkipped: _format_event_json,
        RunCompleted: _format_event_json,
        RunInterrupted: _format_event_json,
        RunAborted: _format_aborted_json,
    }


def subscribe_formatters(
    event_bus: EventBusProtocol,
    formatters: dict[type, Callable[..., None]],
) -> None:
    """Subscribe all formatters to the event bus.

    Args:
        event_bus: The event bus to subscribe handlers to.
        formatters: Mapping from event type to handler callable.
    """
    for event_type, handler in formatters.items():
        event_bus.subscribe(event_type, handler)

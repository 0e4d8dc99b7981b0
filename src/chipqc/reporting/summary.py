# src/chipqc/reporting/summary.py
"""Derive a ChipTestResult from an event log.

summarize() is a pure function of the log: calling it on the same events
always gives the same result, whether the log is live, finished, or was
reloaded from disk after a crash.

A log may hold several runs of one test (a session that was paused and
resumed). The first test-start fixes the planned route; later runs only
continue it, so their transfers accumulate into one result. A test-start
that does not pick up an interrupted run where the liquid was left begins
a new, independent test, and only the latest test is summarized.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from chipqc.contracts.enums import RunStatus
from chipqc.contracts.events import (
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
from chipqc.reporting.log import EventLog

_TERMINAL_STATUS: dict[type, RunStatus] = {
    RunCompleted: RunStatus.COMPLETED,
    RunInterrupted: RunStatus.INTERRUPTED,
    RunAborted: RunStatus.FAILED,
}


def partition(
    planned_route: Iterable[ChannelID],
    success_route: Iterable[ChannelID],
) -> tuple[tuple[ChannelID, ...], tuple[ChannelID, ...]]:
    """Split planned channels into (success_electrodes, failed_electrodes).

    Both are sorted. A channel counts as successful if liquid reached it
    at least once.
    """
    succeeded = set(success_route)
    return tuple(sorted(succeeded)), tuple(sorted(set(planned_route) - succeeded))


def latest_test(events: Sequence[Any]) -> list[Any]:
    """Events of the most recent test in ``events``, from its first test-start.

    A test-start resumes the previous run only when that run ended with
    test-interrupt and the new route starts on the interrupted run's
    liquid position.
    """
    begin: int | None = None
    last_terminal: Any = None
    for index, event in enumerate(events):
        if isinstance(event, RunStarted):
            resumes = (
                begin is not None
                and isinstance(last_terminal, RunInterrupted)
                and event.route[:1] == last_terminal.remaining_route[:1]
            )
            if not resumes:
                begin = index
            last_terminal = None
        elif type(event) in _TERMINAL_STATUS:
            last_terminal = event
    return [] if begin is None else list(events[begin:])


def summarize(log: EventLog | Iterable[Any], *, status: RunStatus | None = None) -> ChipTestResult:
    """Summarize a run (or a resumed sequence of runs) from its events.

    Args:
        log: Events in emission order
        status: Treat the run as having ended with this status instead of
            reading it from the log. The executor uses this to fill in a
            terminal event before appending it.

    Raises:
        ValueError: If the log contains no test-start event
    """
    events = latest_test(list(log.events if isinstance(log, EventLog) else log))
    starts = [e for e in events if isinstance(e, RunStarted)]
    if not starts:
        raise ValueError("Event log has no test-start event")
    planned = starts[0].route

    success_route = tuple(planned[:1]) + tuple(e.target for e in events if isinstance(e, ElectrodeSucceeded))
    skipped = {e.target for e in events if isinstance(e, ElectrodeSkipped)}
    failed_hops = {e.target for e in events if isinstance(e, ElectrodeFailed)}

    # Terminal status belongs to the most recent run only
    last_start = max(i for i, e in enumerate(events) if isinstance(e, RunStarted))
    logged_status = RunStatus.RUNNING
    remaining: tuple[ChannelID, ...] = ()
    for event in events[last_start:]:
        if type(event) in _TERMINAL_STATUS:
            logged_status = _TERMINAL_STATUS[type(event)]
            if isinstance(event, RunInterrupted):
                remaining = event.remaining_route
    if status is None:
        status = logged_status

    success_electrodes, failed_electrodes = partition(planned, success_route)
    if status != RunStatus.COMPLETED:
        # Untested channels of an unfinished run are not failures
        failed_electrodes = tuple(sorted((failed_hops | skipped) - set(success_electrodes)))

    return ChipTestResult(
        status=status,
        success_route=success_route,
        success_electrodes=success_electrodes,
        failed_electrodes=failed_electrodes,
        skipped_electrodes=tuple(sorted(skipped)),
        remaining_route=remaining,
    )

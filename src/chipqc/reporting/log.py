# src/chipqc/reporting/log.py
"""EventLog: append-only ordered record of a test run's events.

Every event the executor emits is appended here before any subscriber
sees it, so completed transfer history survives a crashing subscriber, an
interrupted run or a fatal error. Entries are never mutated or removed.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, TypeVar

from chipqc.contracts.events import EVENT_TYPES

E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class LogEntry:
    """An event and the UTC time it was recorded."""

    event: Any
    utc_time: datetime


class EventLog:
    """Append-only event log.

    Sinks (e.g., a JSONL writer) receive each entry as it is appended,
    in order, so a persisted log is complete up to the last appended event.

    Example:
        log = EventLog()
        log.add_sink(writer.write)
        log.append(RunStarted(route=(1, 2), way_points=(1, 2)))
        summarize(log)
    """

    def __init__(
        self,
        entries: Iterable[LogEntry] = (),
        *,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._entries: list[LogEntry] = list(entries)
        self._now = now if now is not None else lambda: datetime.now(UTC)
        self._sinks: list[Callable[[LogEntry], None]] = []

    def add_sink(self, sink: Callable[[LogEntry], None]) -> None:
        self._sinks.append(sink)

    def append(self, event: Any) -> LogEntry:
        """Record ``event``; returns the stored entry.

        Raises:
            TypeError: If ``event`` is not a known run event type
        """
        if type(event) not in EVENT_TYPES.values():
            raise TypeError(f"Not a run event: {type(event).__name__}")
        entry = LogEntry(event=event, utc_time=self._now())
        self._entries.append(entry)
        for sink in self._sinks:
            sink(entry)
        return entry

    @property
    def entries(self) -> tuple[LogEntry, ...]:
        return tuple(self._entries)

    @property
    def events(self) -> tuple[Any, ...]:
        return tuple(entry.event for entry in self._entries)

    def of_type(self, event_type: type[E]) -> list[E]:
        return [entry.event for entry in self._entries if type(entry.event) is event_type]

    def __iter__(self) -> Iterator[Any]:
        return iter(self.events)

    def __len__(self) -> int:
        return len(self._entries)

# src/chipqc/reporting/jsonl.py
"""JSON Lines persistence for event logs.

One JSON object per line, in emission order:

    {"event": "electrode-success", "outcome": "success",
     "utc_time": "2024-01-01T00:00:01+00:00",
     "source": 1, "target": 2, "start": "...", "end": "...", "attempt": 1}

Lines are flushed as they are written, so a log file is usable for
summarize() even if the process dies mid-run.
"""

from __future__ import annotations

import json
from dataclasses import fields
from datetime import datetime
from pathlib import Path
from types import TracebackType
from typing import IO, Any

from chipqc.contracts.events import EVENT_TYPES
from chipqc.reporting.log import EventLog, LogEntry


def event_to_record(event: Any) -> dict[str, Any]:
    """Serialize a run event to a JSON-compatible dict tagged with its event name.

    Hop events also carry their ``outcome`` (success, timeout or exhausted).
    """
    record: dict[str, Any] = {"event": event.event_name}
    outcome = getattr(event, "outcome", None)
    if outcome is not None:
        record["outcome"] = outcome.value
    for f in fields(event):
        value = getattr(event, f.name)
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, tuple):
            value = list(value)
        record[f.name] = value
    return record


def entry_to_record(entry: LogEntry) -> dict[str, Any]:
    """Serialize a log entry to a JSON-compatible dict."""
    record = event_to_record(entry.event)
    record["utc_time"] = entry.utc_time.isoformat()
    return record


def record_to_entry(record: dict[str, Any]) -> LogEntry:
    """Deserialize a record written by entry_to_record().

    Raises:
        ValueError: If the record's event tag is unknown or fields are missing
    """
    data = dict(record)
    name = data.pop("event", None)
    if name not in EVENT_TYPES:
        raise ValueError(f"Unknown event type: {name!r}")
    if "utc_time" not in data:
        raise ValueError(f"Event {name!r} has no utc_time")
    utc_time = datetime.fromisoformat(data.pop("utc_time"))

    event_type = EVENT_TYPES[name]
    kwargs: dict[str, Any] = {}
    for f in fields(event_type):
        if f.name not in data:
            raise ValueError(f"Event {name!r} is missing field {f.name!r}")
        value = data[f.name]
        if f.type is datetime:
            value = datetime.fromisoformat(value)
        elif isinstance(value, list):
            value = tuple(value)
        kwargs[f.name] = value
    return LogEntry(event=event_type(**kwargs), utc_time=utc_time)


class JsonlEventWriter:
    """Streams log entries to a JSONL file as they are recorded.

    The file is replaced when opened unless ``append`` is True; appending
    is for continuing the same test (e.g., a resumed session).

    Usage:
        with JsonlEventWriter(path) as writer:
            log.add_sink(writer.write)
            executor.run()
    """

    def __init__(self, path: Path, *, append: bool = False) -> None:
        self._path = path
        self._append = append
        self._file: IO[str] | None = None

    def open(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self._path.open("a" if self._append else "w", encoding="utf-8")

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def write(self, entry: LogEntry) -> None:
        if self._file is None:
            raise RuntimeError(f"Event log writer for {self._path} is not open")
        self._file.write(json.dumps(entry_to_record(entry)) + "\n")
        self._file.flush()

    def __enter__(self) -> JsonlEventWriter:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def write_event_log(log: EventLog, path: Path) -> None:
    """Write a whole log to ``path``, replacing any existing file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        for entry in log.entries:
            f.write(json.dumps(entry_to_record(entry)) + "\n")


def read_event_log(path: Path) -> EventLog:
    """Load a JSONL event log.

    Blank lines are ignored. A truncated final line (process killed while
    writing) is dropped; corruption anywhere else is an error.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If a line is not a valid event record
    """
    lines = path.read_text(encoding="utf-8").splitlines()
    numbered = [(n, line) for n, line in enumerate(lines, start=1) if line.strip()]
    entries: list[LogEntry] = []
    for index, (number, line) in enumerate(numbered):
        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            if index == len(numbered) - 1:
                break
            raise ValueError(f"{path}:{number}: invalid JSON: {e}") from e
        try:
            entries.append(record_to_entry(record))
        except (ValueError, TypeError) as e:
            raise ValueError(f"{path}:{number}: {e}") from e
    return EventLog(entries)

# tests/unit/reporting/test_log.py
"""Tests for the append-only EventLog."""

from datetime import UTC, datetime

import pytest

from chipqc.contracts.events import ElectrodeSkipped, RunStarted
from chipqc.engine.clock import MockClock
from chipqc.reporting.log import EventLog, LogEntry


class TestEventLog:
    def test_append_records_time(self) -> None:
        clock = MockClock()
        log = EventLog(now=clock.now)

        entry = log.append(RunStarted(route=(1,), way_points=(1,)))

        assert entry.utc_time == datetime(2024, 1, 1, tzinfo=UTC)
        assert log.entries == (entry,)

    def test_preserves_order(self) -> None:
        log = EventLog()
        events = [RunStarted(route=(1, 2), way_points=(1, 2)), ElectrodeSkipped(source=1, target=2)]

        for event in events:
            log.append(event)

        assert list(log) == events
        assert log.of_type(ElectrodeSkipped) == [events[1]]

    def test_rejects_unknown_events(self) -> None:
        with pytest.raises(TypeError, match="Not a run event"):
            EventLog().append({"event": "test-start"})

    def test_sinks_receive_entries(self) -> None:
        log = EventLog()
        received: list[LogEntry] = []
        log.add_sink(received.append)

        entry = log.append(RunStarted(route=(1,), way_points=(1,)))

        assert received == [entry]

    def test_entries_are_a_snapshot(self) -> None:
        log = EventLog()
        snapshot = log.entries
        log.append(RunStarted(route=(1,), way_points=(1,)))

        assert snapshot == ()
        assert len(log) == 1

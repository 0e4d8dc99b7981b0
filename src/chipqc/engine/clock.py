# src/chipqc/engine/clock.py
"""Clock abstraction for testable timeout and backoff logic.

The executor reads event timestamps and sleeps between hop attempts
through a Clock, so tests can run retry/backoff paths without real
sleeps.

Production code uses SystemClock (the default).
Tests inject MockClock to control time advancement.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    """Abstract clock used by the transfer executor.

    Implementations:
    - SystemClock: Uses the system clocks and time.sleep() (production)
    - MockClock: Returns controllable times; sleep() advances time (testing)
    """

    def now(self) -> datetime:
        """Return the current wall-clock time as a timezone-aware UTC datetime."""
        ...

    def sleep(self, seconds: float) -> None:
        """Block for ``seconds``."""
        ...


class SystemClock:
    """Production clock backed by datetime.now() and time.sleep()."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


class MockClock:
    """Controllable clock for deterministic testing.

    sleep() returns immediately after advancing time, and records the
    requested duration in ``sleeps``.

    Example:
        clock = MockClock()
        executor = TransferExecutor(context, mover, clock=clock)
        executor.run()
        assert clock.sleeps == [1.0, 1.0]  # two backoffs
    """

    def __init__(self, epoch: datetime | None = None) -> None:
        """Initialize mock clock.

        Args:
            epoch: Wall-clock time the clock starts at (default 2024-01-01 UTC)
        """
        self._elapsed = 0.0
        self._epoch = epoch or datetime(2024, 1, 1, tzinfo=UTC)
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        return self._epoch + timedelta(seconds=self._elapsed)

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)

    def advance(self, seconds: float) -> None:
        """Advance mock time by specified seconds.

        Raises:
            ValueError: If seconds is negative.
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance time by negative amount: {seconds}")
        self._elapsed += seconds


DEFAULT_CLOCK: Clock = SystemClock()

"""Lifecycle events emitted by the transfer executor.

Each event class carries its wire name in ``event_name`` (the tag written to
persisted logs, e.g. ``"electrode-success"``). Events are frozen: once
emitted they are never mutated.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar

from chipqc.contracts.enums import HopOutcome
from chipqc.contracts.types import ChannelID


@dataclass(frozen=True, slots=True)
class RunStarted:
    """Emitted once, before the first hop.

    Attributes:
        route: Planned channels to visit consecutively
        way_points: Waypoints the route was planned through
    """

    event_name: ClassVar[str] = "test-start"

    route: tuple[ChannelID, ...]
    way_points: tuple[ChannelID, ...]


@dataclass(frozen=True, slots=True)
class ElectrodeSucceeded:
    """Liquid reached ``target``.

    ``start`` is when the hop began (first attempt), ``end`` when the
    successful attempt returned; ``attempt`` is 1-based.
    """

    event_name: ClassVar[str] = "electrode-success"
    outcome: ClassVar[HopOutcome] = HopOutcome.SUCCESS

    source: ChannelID
    target: ChannelID
    start: datetime
    end: datetime
    attempt: int


@dataclass(frozen=True, slots=True)
class ElectrodeAttemptFailed:
    """A single attempt to move liquid to ``target`` timed out."""

    event_name: ClassVar[str] = "electrode-attempt-fail"
    outcome: ClassVar[HopOutcome] = HopOutcome.TIMEOUT

    source: ChannelID
    target: ChannelID
    start: datetime
    end: datetime
    attempt: int


@dataclass(frozen=True, slots=True)
class ElectrodeFailed:
    """Every allowed attempt timed out; ``target`` is removed for the run."""

    event_name: ClassVar[str] = "electrode-fail"
    outcome: ClassVar[HopOutcome] = HopOutcome.EXHAUSTED

    source: ChannelID
    target: ChannelID
    start: datetime
    end: datetime
    attempt: int


@dataclass(frozen=True, slots=True)
class ElectrodeSkipped:
    """``target`` became unreachable from ``source`` and was pruned."""

    event_name: ClassVar[str] = "electrode-skip"

    source: ChannelID
    target: ChannelID


@dataclass(frozen=True, slots=True)
class RunCompleted:
    """Emitted once the remaining route is exhausted."""

    event_name: ClassVar[str] = "test-complete"

    success_route: tuple[ChannelID, ...]
    failed_electrodes: tuple[ChannelID, ...]
    success_electrodes: tuple[ChannelID, ...]


@dataclass(frozen=True, slots=True)
class RunInterrupted:
    """Emitted when a run is cancelled at a hop boundary.

    ``remaining_route`` starts at the channel currently holding the liquid,
    so a later run can resume from it.
    """

    event_name: ClassVar[str] = "test-interrupt"

    success_route: tuple[ChannelID, ...]
    failed_electrodes: tuple[ChannelID, ...]
    success_electrodes: tuple[ChannelID, ...]
    remaining_route: tuple[ChannelID, ...]


@dataclass(frozen=True, slots=True)
class RunAborted:
    """Emitted when a fatal error terminates the run.

    Transfers logged before this event remain valid results.
    """

    event_name: ClassVar[str] = "test-abort"

    error_type: str
    error: str


EVENT_TYPES: dict[str, type[Any]] = {
    cls.event_name: cls
    for cls in (
        RunStarted,
        ElectrodeSucceeded,
        ElectrodeAttemptFailed,
        ElectrodeFailed,
        ElectrodeSkipped,
        RunCompleted,
        RunInterrupted,
        RunAborted,
    )
}
"""Wire name -> event class, for deserializing persisted logs."""

"""Exception taxonomy for chip test runs.

Recoverable conditions (MoveTimeout, MaxAttemptsExceeded) are handled inside
the executor. NoPathError and UnreachableWaypointError are fatal for a run
and propagate to the caller.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chipqc.contracts.results import ChipTestResult
    from chipqc.contracts.types import ChannelID


class ChipQCError(Exception):
    """Base class for all chipqc errors."""


class GraphError(ChipQCError):
    """Invalid edit of a channel adjacency graph (e.g., a self-loop)."""


class ChipDefinitionError(ChipQCError):
    """Chip definition file is missing required structure."""


class NoPathError(ChipQCError):
    """No path exists between two channels.

    Raised when the channels are disconnected or either one is not in the
    graph. ``source``/``target`` identify the requested endpoints.
    """

    def __init__(self, source: ChannelID, target: ChannelID, reason: str | None = None) -> None:
        self.source = source
        self.target = target
        self.reason = reason
        message = f"No path between channel {source} and channel {target}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class UnreachableWaypointError(NoPathError):
    """The final channel of the route cannot be reached after pruning.

    Fatal for the run. ``partial_result`` is the best-effort summary of the
    transfers completed before the run was aborted.
    """

    def __init__(
        self,
        source: ChannelID,
        target: ChannelID,
        partial_result: ChipTestResult | None = None,
    ) -> None:
        super().__init__(source, target, reason="waypoint unreachable after rerouting")
        self.partial_result = partial_result


class MoveTimeout(ChipQCError):
    """Liquid did not reach steady state on ``route`` within the deadline."""

    def __init__(self, route: Sequence[ChannelID], timeout: float | None = None) -> None:
        self.route = tuple(route)
        self.timeout = timeout
        detail = f" after {timeout:.2f}s" if timeout is not None else ""
        super().__init__(f"Timed out moving liquid {' -> '.join(str(c) for c in self.route)}{detail}")


class MaxAttemptsExceeded(ChipQCError):
    """Raised when a hop keeps timing out for every allowed attempt."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Max attempts ({attempts}) exceeded: {last_error}")


class ExecutorBusyError(ChipQCError):
    """A test session was started while a run is still in progress."""

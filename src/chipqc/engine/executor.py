# src/chipqc/engine/executor.py
"""TransferExecutor: walks a channel route hop by hop, rerouting around failures.

State machine:

    PLANNING -> RUNNING -> (RECOVERING <-> RUNNING) -> COMPLETE
                   |             |
                   +-------------+--> INTERRUPTED (cancelled at a hop boundary)
                                 +--> FAILED      (fatal error)

Per hop the executor:
1. Repairs the remaining route if its next channel left the graph (detour
   via shortest path, pruning channels that became unreachable).
2. Moves liquid source -> target through the HopMover, retrying timeouts
   up to max_attempts with a fixed backoff.
3. On exhaustion removes the target from the live graph; the next repair
   step detours around it.
4. Checks for cancellation before the next hop.

All run state lives in a RunContext owned by a single executor. Every event
is appended to the context's EventLog before subscribers see it, so
completed transfers are never lost when a run is interrupted or aborted.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from chipqc.contracts.enums import ExecutorState, RunStatus
from chipqc.contracts.errors import MaxAttemptsExceeded, MoveTimeout, NoPathError, UnreachableWaypointError
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
from chipqc.core.events import EventBusProtocol, NullEventBus
from chipqc.core.graph import ChannelGraph
from chipqc.core.logging import get_logger
from chipqc.engine.clock import DEFAULT_CLOCK, Clock
from chipqc.engine.retry import HopRetrier, HopRetryConfig
from chipqc.hardware.protocols import Alerter, HopMover
from chipqc.reporting.log import EventLog
from chipqc.reporting.summary import summarize

logger = get_logger(__name__)


@dataclass
class RunContext:
    """Run-scoped mutable state.

    ``graph`` is the live graph of this run: channels removed from it stay
    removed for the rest of the run. ``remaining[0]`` is always the channel
    currently holding the liquid.
    """

    graph: ChannelGraph
    route: tuple[ChannelID, ...]
    way_points: tuple[ChannelID, ...]
    log: EventLog
    event_bus: EventBusProtocol
    remaining: list[ChannelID] = field(default_factory=list)
    success_route: list[ChannelID] = field(default_factory=list)
    state: ExecutorState = ExecutorState.PLANNING

    @classmethod
    def create(
        cls,
        graph: ChannelGraph,
        route: Sequence[int],
        *,
        way_points: Sequence[int] | None = None,
        event_bus: EventBusProtocol | None = None,
        log: EventLog | None = None,
        clock: Clock = DEFAULT_CLOCK,
        copy_graph: bool = True,
    ) -> RunContext:
        """Build a context for one run.

        Args:
            graph: Chip graph; copied unless ``copy_graph`` is False
            route: Planned channel route (at least one channel)
            way_points: Waypoints the route was planned from (default: the route)
            event_bus: Event subscribers (default: none)
            log: Event log to append to (default: a new log)
            clock: Clock for log timestamps
            copy_graph: Pass False to let the run prune a caller-owned graph

        Raises:
            ValueError: If ``route`` is empty
        """
        if not route:
            raise ValueError("Route must contain at least one channel")
        planned = tuple(ChannelID(int(c)) for c in route)
        return cls(
            graph=graph.copy() if copy_graph else graph,
            route=planned,
            way_points=tuple(ChannelID(int(w)) for w in (way_points if way_points is not None else route)),
            log=log if log is not None else EventLog(now=clock.now),
            event_bus=event_bus if event_bus is not None else NullEventBus(),
            remaining=list(planned),
            success_route=[planned[0]],
        )

    def emit(self, event: Any) -> None:
        """Record ``event`` in the log, then deliver it to subscribers."""
        self.log.append(event)
        self.event_bus.emit(event)


class TransferExecutor:
    """Executes one test run over a RunContext.

    Example:
        context = RunContext.create(chip.graph, plan, way_points=waypoints, event_bus=bus)
        executor = TransferExecutor(context, mover, HopRetryConfig(max_attempts=3))
        result = executor.run()
        result.failed_electrodes  # channels liquid never reached
    """

    def __init__(
        self,
        context: RunContext,
        mover: HopMover,
        retry: HopRetryConfig | None = None,
        *,
        alerter: Alerter | None = None,
        clock: Clock = DEFAULT_CLOCK,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._context = context
        self._mover = mover
        self._retry_config = retry if retry is not None else HopRetryConfig()
        self._retrier = HopRetrier(self._retry_config, sleep=clock.sleep)
        self._alerter = alerter
        self._clock = clock
        self._cancel = cancel_event if cancel_event is not None else threading.Event()

    @property
    def state(self) -> ExecutorState:
        return self._context.state

    @property
    def context(self) -> RunContext:
        return self._context

    def cancel(self) -> None:
        """Request cancellation; honoured at the next hop boundary."""
        self._cancel.set()

    def result(self) -> ChipTestResult:
        """Best-effort result from the events logged so far."""
        return summarize(self._context.log)

    def run(self) -> ChipTestResult:
        """Execute the route.

        Returns:
            Result with status COMPLETED, or INTERRUPTED if cancelled

        Raises:
            UnreachableWaypointError: The final channel became unreachable;
                ``partial_result`` holds the transfers completed so far
            NoPathError: The route's first channel is not in the graph
            RuntimeError: If the context was already run
            Exception: Any non-timeout error from the mover, unchanged
        """
        ctx = self._context
        if ctx.state != ExecutorState.PLANNING:
            raise RuntimeError(f"RunContext already used (state={ctx.state.value})")
        if ctx.route[0] not in ctx.graph:
            ctx.state = ExecutorState.FAILED
            raise NoPathError(ctx.route[0], ctx.route[0], reason="start channel is not in the channel graph")

        ctx.state = ExecutorState.RUNNING
        logger.info(
            "Begin DMF chip test routine",
            route_length=len(ctx.route),
            way_points=list(ctx.way_points),
            max_attempts=self._retry_config.max_attempts,
        )
        ctx.emit(RunStarted(route=ctx.route, way_points=ctx.way_points))

        try:
            interrupted = self._drive()
        except UnreachableWaypointError as e:
            self._abort(e)
            e.partial_result = self.result()
            raise
        except Exception as e:
            self._abort(e)
            raise

        if interrupted:
            return self._interrupt()
        return self._complete()

    def _drive(self) -> bool:
        """Walk the remaining route. Returns True if cancelled."""
        ctx = self._context
        while len(ctx.remaining) > 1:
            source = ctx.remaining[0]
            if not self._repair_route(source):
                break
            self._transfer(source, ctx.remaining[1])
            if self._cancel.is_set():
                return True
        return False

    def _repair_route(self, source: ChannelID) -> bool:
        """Make ``remaining[1]`` a channel reachable from ``source``.

        Channels missing from the graph are dropped and the next surviving
        channel is reached by a detour. A present-but-unreachable channel is
        pruned (electrode-skip), unless it is the last channel of the route.

        Returns:
            False if the route ran out of channels.

        Raises:
            UnreachableWaypointError: If the route's last channel is unreachable
        """
        ctx = self._context
        remaining = ctx.remaining
        while len(remaining) > 1 and remaining[1] not in ctx.graph:
            ctx.state = ExecutorState.RECOVERING
            dropped = remaining.pop(1)
            logger.debug("Dropped channel missing from graph", channel=dropped, source=source)
            if len(remaining) == 1:
                break
            next_channel = remaining[1]
            if next_channel not in ctx.graph:
                continue
            try:
                detour = ctx.graph.shortest_path(source, next_channel)
            except NoPathError as e:
                if len(remaining) == 2:
                    raise UnreachableWaypointError(source, next_channel) from e
                # Failed bottleneck electrode cut this channel off the route
                ctx.graph.remove(next_channel)
                logger.warning("Pruning unreachable electrode", channel=next_channel, source=source)
                ctx.emit(ElectrodeSkipped(source=source, target=next_channel))
                continue
            remaining[0:2] = detour
            logger.info("Rerouted", source=source, target=next_channel, detour=detour)
        return len(remaining) > 1

    def _transfer(self, source: ChannelID, target: ChannelID) -> None:
        ctx = self._context
        ctx.state = ExecutorState.RUNNING
        start = self._clock.now()
        timeout = self._retry_config.hop_timeout

        def attempt_move(attempt: int) -> tuple[int, list[dict[str, Any]]]:
            return attempt, self._mover.move([source, target], timeout=timeout)

        def on_attempt_failed(attempt: int, error: BaseException) -> None:
            logger.warning("Timed out moving liquid", source=source, target=target, attempt=attempt)
            ctx.emit(
                ElectrodeAttemptFailed(source=source, target=target, start=start, end=self._clock.now(), attempt=attempt)
            )

        try:
            attempt, messages = self._retrier.execute(
                attempt_move,
                is_retryable=lambda e: isinstance(e, MoveTimeout),
                on_attempt_failed=on_attempt_failed,
            )
        except MaxAttemptsExceeded as e:
            self._fail_electrode(source, target, start, e.attempts)
            return

        ctx.remaining.pop(0)
        ctx.success_route.append(target)
        logger.debug("Moved liquid", source=source, target=target, attempt=attempt, messages=len(messages))
        ctx.emit(ElectrodeSucceeded(source=source, target=target, start=start, end=self._clock.now(), attempt=attempt))

    def _fail_electrode(self, source: ChannelID, target: ChannelID, start: datetime, attempts: int) -> None:
        ctx = self._context
        logger.error("Failed to move liquid to electrode", source=source, target=target, attempts=attempts)
        ctx.emit(ElectrodeFailed(source=source, target=target, start=start, end=self._clock.now(), attempt=attempts))
        ctx.graph.remove(target)
        ctx.state = ExecutorState.RECOVERING
        logger.warning("Attempting to reroute around electrode", channel=target)
        self._notify(f"Failed to move liquid to channel {target}")

    def _complete(self) -> ChipTestResult:
        ctx = self._context
        final = summarize(ctx.log, status=RunStatus.COMPLETED)
        ctx.emit(
            RunCompleted(
                success_route=final.success_route,
                failed_electrodes=final.failed_electrodes,
                success_electrodes=final.success_electrodes,
            )
        )
        ctx.state = ExecutorState.COMPLETE
        logger.info("Completed", failed_electrodes=list(final.failed_electrodes))
        self._notify(f"Test complete: {len(final.failed_electrodes)} failed channel(s)")
        return self.result()

    def _interrupt(self) -> ChipTestResult:
        ctx = self._context
        partial = summarize(ctx.log, status=RunStatus.INTERRUPTED)
        ctx.emit(
            RunInterrupted(
                success_route=partial.success_route,
                failed_electrodes=partial.failed_electrodes,
                success_electrodes=partial.success_electrodes,
                remaining_route=tuple(ctx.remaining),
            )
        )
        ctx.state = ExecutorState.INTERRUPTED
        logger.info("Interrupted", position=ctx.remaining[0], remaining=len(ctx.remaining))
        return self.result()

    def _abort(self, error: BaseException) -> None:
        ctx = self._context
        ctx.state = ExecutorState.FAILED
        logger.error("Chip test aborted", error=str(error), exc_info=error)
        ctx.emit(RunAborted(error_type=type(error).__name__, error=str(error)))

    def _notify(self, message: str) -> None:
        if self._alerter is not None:
            self._alerter.alert(message)

# src/chipqc/engine/session.py
"""QCSession: pausable, resumable chip test in a background thread.

A session owns one planned test of one chip. start() runs the remaining
plan on a daemon thread; pause() requests cancellation, which the
executor honours at the next hop boundary. A later start() resumes from
where the liquid stopped, replanned around any channels that failed or
were marked bad in the meantime. All runs of a session share one
EventLog, so result() summarizes the whole test.

    session = QCSession(chip.graph, plan, retry=HopRetryConfig(max_attempts=3))
    session.start(mover, bad_channels=[12])
    ...
    session.pause()
    session.wait()
    session.start(mover)  # resume
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence

from chipqc.contracts.enums import ExecutorState, RunStatus
from chipqc.contracts.errors import ExecutorBusyError
from chipqc.contracts.events import RunStarted
from chipqc.contracts.results import ChipTestResult
from chipqc.contracts.types import ChannelID
from chipqc.core.events import EventBusProtocol, NullEventBus
from chipqc.core.graph import ChannelGraph
from chipqc.core.logging import get_logger
from chipqc.core.planner import reroute_plan
from chipqc.engine.clock import DEFAULT_CLOCK, Clock
from chipqc.engine.executor import RunContext, TransferExecutor
from chipqc.engine.retry import HopRetryConfig
from chipqc.hardware.protocols import Alerter, HopMover
from chipqc.reporting.log import EventLog
from chipqc.reporting.summary import summarize

logger = get_logger(__name__)


class QCSession:
    """One chip test that can be paused, resumed and reset."""

    def __init__(
        self,
        graph: ChannelGraph,
        channel_plan: Sequence[int],
        *,
        way_points: Sequence[int] | None = None,
        retry: HopRetryConfig | None = None,
        event_bus: EventBusProtocol | None = None,
        alerter: Alerter | None = None,
        clock: Clock = DEFAULT_CLOCK,
        log: EventLog | None = None,
    ) -> None:
        if not channel_plan:
            raise ValueError("Channel plan must contain at least one channel")
        self._base_graph = graph.copy()
        self._base_plan = tuple(ChannelID(int(c)) for c in channel_plan)
        self._way_points = tuple(way_points) if way_points is not None else self._base_plan
        self._retry = retry if retry is not None else HopRetryConfig()
        self._event_bus = event_bus if event_bus is not None else NullEventBus()
        self._alerter = alerter
        self._clock = clock

        self._lock = threading.Lock()
        self._cancel = threading.Event()
        self._thread: threading.Thread | None = None
        self._executor: TransferExecutor | None = None
        self._error: BaseException | None = None
        self._graph = self._base_graph.copy()
        self._log = log if log is not None else EventLog(now=clock.now)

    @property
    def log(self) -> EventLog:
        return self._log

    @property
    def graph(self) -> ChannelGraph:
        """Live graph: the chip minus channels failed or excluded so far."""
        return self._graph

    @property
    def error(self) -> BaseException | None:
        """Fatal error of the most recent run, if it aborted."""
        return self._error

    @property
    def state(self) -> ExecutorState:
        if self._executor is None:
            return ExecutorState.PLANNING
        return self._executor.state

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def channel_plan(self) -> list[ChannelID]:
        """Route the next start() would run.

        The full plan before the first run, or the remaining route of an
        interrupted run, in both cases replanned around removed channels.

        Raises:
            RuntimeError: If the test already completed or aborted
        """
        return reroute_plan(self._graph, self._route_to_run())

    def _route_to_run(self) -> Sequence[ChannelID]:
        if not self._log.of_type(RunStarted):
            return self._base_plan
        previous = summarize(self._log)
        if previous.status != RunStatus.INTERRUPTED:
            raise RuntimeError(f"Test already finished ({previous.status.value}); reset() to test again")
        return previous.remaining_route

    def start(self, mover: HopMover, bad_channels: Iterable[int] = ()) -> None:
        """Run (or resume) the test on a background thread.

        Args:
            mover: Hop actuator for the chip
            bad_channels: Channels to exclude from this and later runs

        Raises:
            ExecutorBusyError: If a run is still in progress
            RuntimeError: If the test already completed or aborted
            ValueError: If ``bad_channels`` includes the channel holding the liquid
        """
        with self._lock:
            if self.is_alive():
                raise ExecutorBusyError("A test run is already in progress; pause() and wait() first")

            bad = [ChannelID(int(c)) for c in bad_channels]
            liquid_at = self._route_to_run()[0]
            if liquid_at in bad:
                raise ValueError(f"Cannot exclude channel {liquid_at}: the liquid is on it")
            excluded = self._graph.remove_all(bad)
            if excluded:
                logger.info("Excluding bad channels", channels=sorted(excluded))
            plan = self.channel_plan()
            if not plan:
                raise RuntimeError("No channels of the test plan remain in the graph")

            context = RunContext.create(
                self._graph,
                plan,
                way_points=self._way_points,
                event_bus=self._event_bus,
                log=self._log,
                clock=self._clock,
                copy_graph=False,
            )
            self._cancel.clear()
            self._error = None
            self._executor = TransferExecutor(
                context,
                mover,
                self._retry,
                alerter=self._alerter,
                clock=self._clock,
                cancel_event=self._cancel,
            )
            self._thread = threading.Thread(
                target=self._run,
                args=(self._executor,),
                name="chipqc-session",
                daemon=True,
            )
            self._thread.start()

    def _run(self, executor: TransferExecutor) -> None:
        try:
            executor.run()
        except Exception as e:
            # Already logged and recorded as test-abort by the executor
            self._error = e

    def pause(self) -> None:
        """Request the running test to stop at the next hop boundary."""
        self._cancel.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the current run ends. Returns False on timeout."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def result(self) -> ChipTestResult:
        """Summary of every run of this test so far.

        Raises:
            ValueError: If the test has not been started
        """
        return summarize(self._log)

    def reset(self) -> None:
        """Stop any run and forget all progress, failures and exclusions."""
        self.pause()
        self.wait()
        with self._lock:
            self._graph = self._base_graph.copy()
            self._log = EventLog(now=self._clock.now)
            self._executor = None
            self._thread = None
            self._error = None
            self._cancel.clear()
        logger.info("Test session reset", plan_length=len(self._base_plan))

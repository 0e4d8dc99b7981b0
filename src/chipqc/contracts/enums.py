"""Status codes shared between the executor, the reporter and the CLI."""

from enum import StrEnum


class RunStatus(StrEnum):
    """Outcome of a chip test run.

    Each terminal status has a matching terminal event (test-complete,
    test-interrupt, test-abort). A log with no terminal event summarizes
    as RUNNING: the run is still going, or the process died mid-run.
    """

    RUNNING = "running"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"
    FAILED = "failed"


class ExecutorState(StrEnum):
    """Lifecycle states of the transfer executor."""

    PLANNING = "planning"
    RUNNING = "running"
    RECOVERING = "recovering"
    COMPLETE = "complete"
    INTERRUPTED = "interrupted"
    FAILED = "failed"


class HopOutcome(StrEnum):
    """Result of a single hop attempt."""

    SUCCESS = "success"
    TIMEOUT = "timeout"
    EXHAUSTED = "exhausted"

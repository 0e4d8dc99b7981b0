"""Shared contracts for cross-boundary data types.

Dataclasses, enums and exceptions that cross subsystem boundaries (graph,
planner, executor, reporter, CLI) live here. This package is a LEAF MODULE
with no outbound dependencies to core/engine.

Settings classes are NOT re-exported here - import them from
chipqc.core.config.
"""

from chipqc.contracts.enums import ExecutorState, HopOutcome, RunStatus
from chipqc.contracts.errors import (
    ChipDefinitionError,
    ChipQCError,
    ExecutorBusyError,
    GraphError,
    MaxAttemptsExceeded,
    MoveTimeout,
    NoPathError,
    UnreachableWaypointError,
)
from chipqc.contracts.events import (
    EVENT_TYPES,
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

__all__ = [
    "EVENT_TYPES",
    "ChannelID",
    "ChipDefinitionError",
    "ChipQCError",
    "ChipTestResult",
    "ElectrodeAttemptFailed",
    "ElectrodeFailed",
    "ElectrodeSkipped",
    "ElectrodeSucceeded",
    "ExecutorBusyError",
    "ExecutorState",
    "GraphError",
    "HopOutcome",
    "MaxAttemptsExceeded",
    "MoveTimeout",
    "NoPathError",
    "RunAborted",
    "RunCompleted",
    "RunInterrupted",
    "RunStarted",
    "RunStatus",
    "UnreachableWaypointError",
]

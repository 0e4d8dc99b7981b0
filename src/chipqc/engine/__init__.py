# src/chipqc/engine/__init__.py
"""Test execution engine: hop-by-hop liquid transfer with retry and rerouting.

This module provides:
- TransferExecutor: Runs one planned route over a RunContext
- QCSession: Pausable, resumable test on a background thread
- HopRetrier: Per-hop timeout retry with tenacity
- Clock: Injectable time source for backoff and timestamps

Example:
    from chipqc.engine import HopRetryConfig, RunContext, TransferExecutor

    context = RunContext.create(chip.graph, plan, way_points=waypoints)
    result = TransferExecutor(context, mover, HopRetryConfig(max_attempts=3)).run()
"""

from chipqc.engine.clock import DEFAULT_CLOCK, Clock, MockClock, SystemClock
from chipqc.engine.executor import RunContext, TransferExecutor
from chipqc.engine.retry import HopRetrier, HopRetryConfig
from chipqc.engine.session import QCSession

__all__ = [
    "DEFAULT_CLOCK",
    "Clock",
    "HopRetrier",
    "HopRetryConfig",
    "MockClock",
    "QCSession",
    "RunContext",
    "SystemClock",
    "TransferExecutor",
]

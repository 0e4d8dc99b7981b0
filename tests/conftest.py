# tests/conftest.py
"""Shared test fixtures and helpers.

Chip fixtures:
- cycle_graph: 5-channel ring 1-2-3-4-5-1
- path_graph: 3-channel line 1-2-3
- mock_clock: MockClock so retry backoff never really sleeps

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import os
from collections.abc import Iterable, Mapping
from pathlib import Path

import pytest
import yaml
from hypothesis import Phase, Verbosity, settings

from chipqc.core.events import EventBus
from chipqc.core.graph import ChannelGraph
from chipqc.engine.clock import MockClock
from chipqc.engine.executor import RunContext, TransferExecutor
from chipqc.engine.retry import HopRetryConfig
from chipqc.hardware.simulated import SimulatedChip

# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Chip fixtures
# =============================================================================


@pytest.fixture
def cycle_graph() -> ChannelGraph:
    return ChannelGraph.from_edges([(1, 2), (2, 3), (3, 4), (4, 5), (5, 1)])


@pytest.fixture
def path_graph() -> ChannelGraph:
    return ChannelGraph.from_edges([(1, 2), (2, 3)])


@pytest.fixture
def mock_clock() -> MockClock:
    return MockClock()


def make_executor(
    graph: ChannelGraph,
    route: list[int],
    *,
    dead: Iterable[int] = (),
    flaky: Mapping[int, int] | None = None,
    max_attempts: int = 3,
    clock: MockClock | None = None,
    event_bus: EventBus | None = None,
) -> tuple[TransferExecutor, SimulatedChip]:
    """Executor over ``route`` driving a SimulatedChip with injected faults."""
    clock = clock or MockClock()
    chip = SimulatedChip(graph, dead_channels=dead, flaky_channels=flaky, position=route[0])
    context = RunContext.create(graph, route, event_bus=event_bus, clock=clock)
    executor = TransferExecutor(
        context,
        chip,
        HopRetryConfig(max_attempts=max_attempts, hop_timeout=1.0, backoff=0.5),
        clock=clock,
    )
    return executor, chip


def write_chip_file(path: Path, document: dict) -> Path:
    path.write_text(yaml.safe_dump(document), encoding="utf-8")
    return path

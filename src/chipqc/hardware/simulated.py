# src/chipqc/hardware/simulated.py
"""In-process chip simulator implementing HopMover.

Stands in for the electrode controller in dry runs and tests. Faults are
injected per channel:

- dead channels: liquid never reaches them (every attempt times out)
- flaky channels: the first N attempts to reach them time out

Usage:
    chip = SimulatedChip(graph, dead_channels={7}, flaky_channels={3: 1})
    chip.move([2, 3], timeout=4.0)  # raises MoveTimeout (first attempt)
    chip.move([2, 3], timeout=4.0)  # succeeds
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from chipqc.contracts.errors import MoveTimeout
from chipqc.contracts.types import ChannelID
from chipqc.core.graph import ChannelGraph

# Nominal capacitance of a liquid-covered electrode, in farads
_LIQUID_CAPACITANCE = 3.0e-12


@dataclass(frozen=True, slots=True)
class SimulatedMove:
    """One attempted hop, as seen by the simulator."""

    source: ChannelID
    target: ChannelID
    succeeded: bool


class SimulatedChip:
    """Fault-injecting HopMover over a chip's adjacency graph.

    Thread-safe: moves are serialized by a lock, like a real controller
    that only accepts one actuation at a time.

    Raises from move():
        MoveTimeout: Target is dead, or flaky with timeouts left
        ValueError: Hop is not between adjacent channels, or not a single hop
        RuntimeError: Liquid is not on the hop's source channel
    """

    def __init__(
        self,
        graph: ChannelGraph,
        *,
        dead_channels: Iterable[int] = (),
        flaky_channels: Mapping[int, int] | None = None,
        position: int | None = None,
    ) -> None:
        # Adjacency is physical: take a private copy so runs pruning their
        # own graph never change which hops the simulator accepts.
        self._graph = graph.copy()
        self._dead = {ChannelID(c) for c in dead_channels}
        self._pending_timeouts = {ChannelID(c): n for c, n in (flaky_channels or {}).items()}
        self._position = None if position is None else ChannelID(position)
        self._lock = threading.Lock()
        self.moves: list[SimulatedMove] = []

    @property
    def position(self) -> ChannelID | None:
        """Channel currently holding the liquid (None before the first move)."""
        return self._position

    def load(self, channel: int) -> None:
        """Place liquid on ``channel`` (e.g., from a reservoir)."""
        with self._lock:
            self._position = ChannelID(channel)

    def move(self, route: Sequence[ChannelID], *, timeout: float) -> list[dict[str, Any]]:
        if len(route) != 2:
            raise ValueError(f"Simulated chip moves one hop at a time, got route {list(route)}")
        source, target = ChannelID(route[0]), ChannelID(route[1])
        if not self._graph.has_connection(source, target):
            raise ValueError(f"Channels {source} and {target} are not adjacent")

        with self._lock:
            if self._position is not None and self._position != source:
                raise RuntimeError(f"Liquid is on channel {self._position}, not on source channel {source}")

            if target in self._dead or self._pending_timeouts.get(target, 0) > 0:
                if target in self._pending_timeouts:
                    self._pending_timeouts[target] -= 1
                self.moves.append(SimulatedMove(source, target, succeeded=False))
                # Liquid is driven back to the last known-good channel
                self._position = source
                raise MoveTimeout(route, timeout=timeout)

            self._position = target
            self.moves.append(SimulatedMove(source, target, succeeded=True))

        return [
            {"channels": [source], "capacitance": _LIQUID_CAPACITANCE, "steady_state": True},
            {"channels": [target], "capacitance": _LIQUID_CAPACITANCE, "steady_state": True},
        ]

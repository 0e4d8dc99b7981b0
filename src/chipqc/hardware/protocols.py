# src/chipqc/hardware/protocols.py
"""Contracts for the collaborators the executor drives.

The executor never talks to the electrode controller directly. It moves
liquid through a HopMover and notifies the operator through an Alerter.
The controller transport (wire protocol, proxy wiring) lives behind
these protocols.
"""

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from chipqc.contracts.types import ChannelID


@runtime_checkable
class HopMover(Protocol):
    """Moves liquid between adjacent channels.

    Contract:
    - ``route`` is ``[source, target]`` for a single hop.
    - Returns hardware telemetry messages (e.g., capacitance readings)
      once the liquid reached steady state on ``target``.
    - Raises MoveTimeout(route) if steady state is not reached within
      ``timeout`` seconds, after driving the liquid back to ``source``.
    - Any other exception is fatal for the run.

    Implementations that need global mutual exclusion on the controller
    (one actuation in flight) must enforce it themselves; the executor
    only guarantees it never overlaps moves within one run.
    """

    def move(self, route: Sequence[ChannelID], *, timeout: float) -> list[dict[str, Any]]: ...


@runtime_checkable
class Alerter(Protocol):
    """Notifies the operator (audible/visual); no acknowledgement expected."""

    def alert(self, message: str) -> None: ...

# src/chipqc/hardware/__init__.py
"""Hardware collaborators: move/alert protocols, a simulated chip and alerters."""

from chipqc.hardware.alerts import LogAlerter, TerminalBell
from chipqc.hardware.protocols import Alerter, HopMover
from chipqc.hardware.simulated import SimulatedChip, SimulatedMove

__all__ = [
    "Alerter",
    "HopMover",
    "LogAlerter",
    "SimulatedChip",
    "SimulatedMove",
    "TerminalBell",
]

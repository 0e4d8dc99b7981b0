# src/chipqc/hardware/alerts.py
"""Operator alert implementations."""

from __future__ import annotations

import sys
from typing import TextIO

from chipqc.core.logging import get_logger

logger = get_logger(__name__)


class TerminalBell:
    """Rings the terminal bell (BEL) so an operator away from the screen hears failures."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def alert(self, message: str) -> None:
        stream = self._stream or sys.stderr
        stream.write("\a")
        stream.flush()
        logger.debug("Operator alerted", message=message)


class LogAlerter:
    """Records alerts as warnings. Default when no operator is present."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def alert(self, message: str) -> None:
        self.messages.append(message)
        logger.warning("Operator alert", message=message)

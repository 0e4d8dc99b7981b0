"""Semantic type aliases for compile-time type safety."""

from typing import NewType

ChannelID = NewType("ChannelID", int)
"""Addressable actuation unit on the chip, as numbered by the controller."""

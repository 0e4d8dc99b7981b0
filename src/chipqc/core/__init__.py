# src/chipqc/core/__init__.py
"""Core subsystems: channel graph, route planning, chip loading, config, events and logging."""

from chipqc.core.graph import ChannelGraph
from chipqc.core.planner import create_channel_plan, reroute_plan, rotate_waypoints

__all__ = [
    "ChannelGraph",
    "create_channel_plan",
    "reroute_plan",
    "rotate_waypoints",
]

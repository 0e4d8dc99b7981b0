# src/chipqc/core/planner.py
"""Route planning: waypoints -> concrete hop-by-hop channel plan.

A channel plan is the concatenation of shortest paths between consecutive
waypoints, with the join channel between two paths kept only once. Any
missing path is a planning failure (NoPathError), never skipped.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from itertools import pairwise

from chipqc.contracts.errors import NoPathError
from chipqc.contracts.types import ChannelID
from chipqc.core.graph import ChannelGraph


def unique_consecutive(channels: Iterable[ChannelID]) -> Iterator[ChannelID]:
    """Drop consecutive repeats: [1, 1, 2, 2, 1] -> [1, 2, 1]."""
    previous: ChannelID | None = None
    for channel in channels:
        if channel != previous:
            yield channel
        previous = channel


def rotate_waypoints(waypoints: Sequence[int], start: int | None = None) -> list[ChannelID]:
    """Rotate waypoints so the tour begins at ``start``.

    Raises:
        ValueError: If ``start`` is not one of the waypoints
    """
    channels = [ChannelID(int(w)) for w in waypoints]
    if start is None or not channels:
        return channels
    if start not in channels:
        raise ValueError(f"Start channel {start} must be one of the waypoints: {channels}")
    index = channels.index(ChannelID(start))
    return channels[index:] + channels[:index]


def create_channel_plan(
    graph: ChannelGraph,
    waypoints: Sequence[int],
    loop: bool = True,
) -> list[ChannelID]:
    """Plan a continuous walk through ``waypoints``.

    Args:
        graph: Channel adjacency graph (not modified)
        waypoints: Channels to visit in order (repeats allowed)
        loop: If True, close the tour back to the first waypoint

    Returns:
        Channels to visit consecutively; every consecutive pair is a graph edge.

    Raises:
        ValueError: If no waypoints are given
        NoPathError: If a waypoint is not in the graph or a leg has no path
    """
    if not waypoints:
        raise ValueError("At least one waypoint is required")

    legs = [ChannelID(int(w)) for w in waypoints]
    for waypoint in legs:
        if waypoint not in graph:
            raise NoPathError(waypoint, waypoint, reason=f"waypoint {waypoint} is not in the channel graph")
    if loop:
        legs.append(legs[0])

    plan: list[ChannelID] = [legs[0]]
    for source, target in pairwise(legs):
        plan.extend(graph.shortest_path(source, target)[1:])
    return plan


def reroute_plan(graph: ChannelGraph, channel_plan: Sequence[ChannelID]) -> list[ChannelID]:
    """Replan ``channel_plan`` through the channels still in ``graph``.

    Channels removed from the graph (e.g., excluded as bad before a resumed
    run) are dropped and the survivors are reconnected by shortest paths,
    without closing a loop. A plan whose channels are all still present is
    returned unchanged.

    Raises:
        NoPathError: If the surviving channels can no longer be connected
    """
    surviving = [c for c in channel_plan if c in graph]
    if len(surviving) == len(channel_plan):
        return list(channel_plan)
    if not surviving:
        return []
    return create_channel_plan(graph, list(unique_consecutive(surviving)), loop=False)

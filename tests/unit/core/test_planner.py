# tests/unit/core/test_planner.py
"""Tests for route planning."""

from itertools import pairwise

import pytest

from chipqc.contracts.errors import NoPathError
from chipqc.core.graph import ChannelGraph
from chipqc.core.planner import create_channel_plan, reroute_plan, rotate_waypoints, unique_consecutive


def assert_walk(graph: ChannelGraph, plan: list[int]) -> None:
    for a, b in pairwise(plan):
        assert graph.has_connection(a, b), f"{a} -> {b} is not a hop"


class TestCreateChannelPlan:
    def test_loop_on_cycle(self, cycle_graph: ChannelGraph) -> None:
        plan = create_channel_plan(cycle_graph, [1, 3], loop=True)

        assert plan == [1, 2, 3, 2, 1]

    def test_no_loop(self, cycle_graph: ChannelGraph) -> None:
        assert create_channel_plan(cycle_graph, [1, 3], loop=False) == [1, 2, 3]

    def test_single_waypoint_loop(self, cycle_graph: ChannelGraph) -> None:
        assert create_channel_plan(cycle_graph, [4], loop=True) == [4]

    def test_repeated_waypoint_does_not_duplicate_join(self, path_graph: ChannelGraph) -> None:
        plan = create_channel_plan(path_graph, [1, 3, 3], loop=False)

        assert plan == [1, 2, 3]

    def test_loop_plan_is_closed_walk(self) -> None:
        graph = ChannelGraph.from_edges([(i, i + 1) for i in range(1, 10)])
        waypoints = [5, 1, 9, 3]

        plan = create_channel_plan(graph, waypoints, loop=True)

        assert plan[0] == plan[-1] == 5
        assert_walk(graph, plan)
        assert all(plan[i] != plan[i + 1] for i in range(len(plan) - 1))

    def test_visits_waypoints_in_order(self, cycle_graph: ChannelGraph) -> None:
        waypoints = [2, 5, 3]

        plan = create_channel_plan(cycle_graph, waypoints, loop=False)

        positions = []
        cursor = 0
        for w in waypoints:
            cursor = plan.index(w, cursor)
            positions.append(cursor)
        assert positions == sorted(positions)

    def test_empty_waypoints_rejected(self, cycle_graph: ChannelGraph) -> None:
        with pytest.raises(ValueError):
            create_channel_plan(cycle_graph, [])

    def test_missing_waypoint_raises(self, cycle_graph: ChannelGraph) -> None:
        with pytest.raises(NoPathError):
            create_channel_plan(cycle_graph, [1, 42])

    def test_disconnected_waypoints_raise(self) -> None:
        graph = ChannelGraph.from_edges([(1, 2), (3, 4)])

        with pytest.raises(NoPathError):
            create_channel_plan(graph, [1, 4], loop=False)

    def test_graph_not_modified(self, cycle_graph: ChannelGraph) -> None:
        create_channel_plan(cycle_graph, [1, 3])

        assert cycle_graph.channel_count == 5
        assert cycle_graph.connection_count == 5


class TestRotateWaypoints:
    def test_rotates_to_start(self) -> None:
        assert rotate_waypoints([110, 109, 115], start=115) == [115, 110, 109]

    def test_no_start_keeps_order(self) -> None:
        assert rotate_waypoints([3, 1, 2]) == [3, 1, 2]

    def test_start_must_be_waypoint(self) -> None:
        with pytest.raises(ValueError, match="must be one of the waypoints"):
            rotate_waypoints([1, 2], start=5)


class TestReroutePlan:
    def test_unchanged_when_nothing_removed(self, cycle_graph: ChannelGraph) -> None:
        plan = [1, 2, 3]

        assert reroute_plan(cycle_graph, plan) == plan

    def test_detours_around_removed_channel(self, cycle_graph: ChannelGraph) -> None:
        cycle_graph.remove(2)

        assert reroute_plan(cycle_graph, [1, 2, 3]) == [1, 5, 4, 3]

    def test_nothing_survives(self, cycle_graph: ChannelGraph) -> None:
        cycle_graph.remove_all([1, 2])

        assert reroute_plan(cycle_graph, [1, 2]) == []

    def test_disconnected_survivors_raise(self, path_graph: ChannelGraph) -> None:
        path_graph.remove(2)

        with pytest.raises(NoPathError):
            reroute_plan(path_graph, [1, 2, 3])


def test_unique_consecutive() -> None:
    assert list(unique_consecutive([1, 1, 2, 2, 1])) == [1, 2, 1]

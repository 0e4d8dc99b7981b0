# tests/unit/core/test_graph.py
"""Tests for ChannelGraph."""

import networkx as nx
import pytest

from chipqc.contracts.errors import GraphError, NoPathError
from chipqc.core.graph import ChannelGraph


class TestConstruction:
    def test_from_edges_is_undirected(self) -> None:
        graph = ChannelGraph.from_edges([(1, 2), (2, 3)])

        assert graph.has_connection(2, 1)
        assert graph.has_connection(3, 2)
        assert graph.channels == [1, 2, 3]
        assert graph.connections == [(1, 2), (2, 3)]

    def test_isolated_channels_are_kept(self) -> None:
        graph = ChannelGraph.from_edges([(1, 2)], channels=[7])

        assert 7 in graph
        assert len(graph) == 3

    def test_self_loop_rejected(self) -> None:
        with pytest.raises(GraphError, match="Self-loop"):
            ChannelGraph.from_edges([(1, 1)])

    def test_wrapping_graph_with_self_loop_rejected(self) -> None:
        g = nx.Graph()
        g.add_edge(4, 4)

        with pytest.raises(GraphError):
            ChannelGraph(g)

    def test_repr_shows_counts(self, cycle_graph: ChannelGraph) -> None:
        assert repr(cycle_graph) == "ChannelGraph(channels=5, connections=5)"


class TestRemove:
    def test_remove_drops_channel_and_connections(self, cycle_graph: ChannelGraph) -> None:
        assert cycle_graph.remove(3) is True

        assert 3 not in cycle_graph
        assert not cycle_graph.has_connection(2, 3)
        assert cycle_graph.connection_count == 3

    def test_remove_absent_channel_is_noop(self, cycle_graph: ChannelGraph) -> None:
        assert cycle_graph.remove(99) is False
        assert cycle_graph.channel_count == 5

    def test_remove_all_reports_present_channels(self, cycle_graph: ChannelGraph) -> None:
        removed = cycle_graph.remove_all([2, 42, 4])

        assert removed == [2, 4]
        assert cycle_graph.channels == [1, 3, 5]


class TestCopy:
    def test_copy_is_independent(self, cycle_graph: ChannelGraph) -> None:
        clone = cycle_graph.copy()
        clone.remove(2)

        assert 2 in cycle_graph
        assert cycle_graph.has_connection(1, 2)


class TestShortestPath:
    def test_path_includes_both_endpoints(self, path_graph: ChannelGraph) -> None:
        assert path_graph.shortest_path(1, 3) == [1, 2, 3]

    def test_path_to_self(self, path_graph: ChannelGraph) -> None:
        assert path_graph.shortest_path(2, 2) == [2]

    def test_cycle_takes_the_short_way_round(self, cycle_graph: ChannelGraph) -> None:
        assert cycle_graph.shortest_path(1, 4) == [1, 5, 4]

    def test_equal_length_paths_are_valid(self) -> None:
        graph = ChannelGraph.from_edges([(1, 2), (2, 4), (1, 3), (3, 4)])

        path = graph.shortest_path(1, 4)

        assert path[0] == 1
        assert path[-1] == 4
        assert len(path) == 3
        assert path[1] in {2, 3}

    def test_disconnected_raises_no_path(self) -> None:
        graph = ChannelGraph.from_edges([(1, 2), (3, 4)])

        with pytest.raises(NoPathError) as exc_info:
            graph.shortest_path(1, 4)

        assert exc_info.value.source == 1
        assert exc_info.value.target == 4

    def test_missing_channel_raises_no_path(self, path_graph: ChannelGraph) -> None:
        with pytest.raises(NoPathError):
            path_graph.shortest_path(1, 99)

    def test_path_after_removal_detours(self, cycle_graph: ChannelGraph) -> None:
        cycle_graph.remove(2)

        assert cycle_graph.shortest_path(1, 3) == [1, 5, 4, 3]


class TestQueries:
    def test_iteration_sorted(self) -> None:
        graph = ChannelGraph.from_edges([(3, 1), (2, 3)])

        assert list(graph) == [1, 2, 3]

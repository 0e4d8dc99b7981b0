# src/chipqc/core/graph.py
"""ChannelGraph: undirected adjacency graph over chip channels.

Wraps a NetworkX Graph with the operations a test run needs: node
removal, shortest-path queries and independent copies. NetworkX
exceptions are translated to NoPathError/GraphError at this boundary so
callers never depend on networkx directly.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

import networkx as nx

from chipqc.contracts.errors import GraphError, NoPathError
from chipqc.contracts.types import ChannelID


class ChannelGraph:
    """Adjacency graph of chip channels.

    Invariants: edges are undirected (symmetric) and there are no self-loops.
    Nodes may only be removed during a run, never re-added.

    Example:
        graph = ChannelGraph.from_edges([(1, 2), (2, 3)])
        graph.shortest_path(1, 3)  # [1, 2, 3]
        graph.remove(2)
        graph.shortest_path(1, 3)  # raises NoPathError
    """

    def __init__(self, graph: nx.Graph[ChannelID] | None = None) -> None:
        self._graph: nx.Graph[ChannelID] = nx.Graph() if graph is None else graph
        if nx.number_of_selfloops(self._graph):
            raise GraphError("Channel graph must not contain self-loops")

    @classmethod
    def from_edges(
        cls,
        edges: Iterable[tuple[int, int]],
        channels: Iterable[int] = (),
    ) -> ChannelGraph:
        """Build a graph from connections, plus optional isolated channels."""
        graph = cls()
        for channel in channels:
            graph.add_channel(channel)
        for a, b in edges:
            graph.add_connection(a, b)
        return graph

    def add_channel(self, channel: int) -> None:
        self._graph.add_node(ChannelID(int(channel)))

    def add_connection(self, a: int, b: int) -> None:
        """Connect two channels (adds them if missing).

        Raises:
            GraphError: If a == b
        """
        if a == b:
            raise GraphError(f"Self-loop on channel {a} is not allowed")
        self._graph.add_edge(ChannelID(int(a)), ChannelID(int(b)))

    def remove(self, channel: int) -> bool:
        """Remove a channel and all its connections.

        Removing an absent channel is a no-op.

        Returns:
            True if the channel was present and removed, False otherwise.
        """
        if channel not in self._graph:
            return False
        self._graph.remove_node(channel)
        return True

    def remove_all(self, channels: Iterable[int]) -> list[ChannelID]:
        """Remove several channels, returning the ones that were present."""
        return [ChannelID(c) for c in channels if self.remove(c)]

    def shortest_path(self, source: int, target: int) -> list[ChannelID]:
        """Shortest path from source to target, both inclusive.

        Ties between equal-length paths are broken by NetworkX iteration
        order; callers must not rely on which one is returned.

        Raises:
            NoPathError: If either channel is absent or they are disconnected
        """
        try:
            path: list[ChannelID] = nx.shortest_path(self._graph, source, target)
        except nx.NodeNotFound as e:
            raise NoPathError(ChannelID(source), ChannelID(target), reason=str(e)) from e
        except nx.NetworkXNoPath as e:
            raise NoPathError(ChannelID(source), ChannelID(target), reason="channels are disconnected") from e
        return path

    def has_connection(self, a: int, b: int) -> bool:
        return bool(self._graph.has_edge(a, b))

    def copy(self) -> ChannelGraph:
        """Independent copy; mutating it never affects this graph."""
        return ChannelGraph(self._graph.copy())

    @property
    def channels(self) -> list[ChannelID]:
        return sorted(self._graph.nodes)

    @property
    def connections(self) -> list[tuple[ChannelID, ChannelID]]:
        return sorted((min(a, b), max(a, b)) for a, b in self._graph.edges)

    @property
    def channel_count(self) -> int:
        return int(self._graph.number_of_nodes())

    @property
    def connection_count(self) -> int:
        return int(self._graph.number_of_edges())

    def __contains__(self, channel: object) -> bool:
        return channel in self._graph

    def __iter__(self) -> Iterator[ChannelID]:
        return iter(self.channels)

    def __len__(self) -> int:
        return self.channel_count

    def __repr__(self) -> str:
        return f"ChannelGraph(channels={self.channel_count}, connections={self.connection_count})"

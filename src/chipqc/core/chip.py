# src/chipqc/core/chip.py
"""Chip definition loading.

A chip definition is a YAML (or JSON, which YAML parses) document:

    channels: [1, 2, 3, 4]
    connections:
      - [1, 2]
      - [2, 3]
      - [3, 4]
    test_routes:
      default: [1, 4]

``channels`` lists channels with no connections too, so they still appear
in reports. Parsing of vendor chip design files is done upstream; this
module only turns the resolved channel adjacency into a ChannelGraph.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from chipqc.contracts.errors import ChipDefinitionError, GraphError
from chipqc.contracts.types import ChannelID
from chipqc.core.graph import ChannelGraph
from chipqc.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ChipDefinition:
    """Pristine channel graph of a chip plus its named test routes.

    ``graph`` is the canonical graph: runs must work on ``graph.copy()``.
    """

    graph: ChannelGraph
    test_routes: Mapping[str, tuple[ChannelID, ...]] = field(default_factory=dict)
    excluded_channels: tuple[ChannelID, ...] = ()

    def waypoints(self, name: str) -> list[ChannelID]:
        """Waypoints of the named test route.

        Raises:
            ChipDefinitionError: If no such route exists
        """
        if name not in self.test_routes:
            available = ", ".join(sorted(self.test_routes)) or "none"
            raise ChipDefinitionError(f"No test route named {name!r} in chip definition (available: {available})")
        return list(self.test_routes[name])


def _as_channel(value: Any, context: str) -> ChannelID:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ChipDefinitionError(f"{context}: channel ids must be integers, got {value!r}")
    return ChannelID(value)


def parse_chip(document: Mapping[str, Any], bad_channels: Iterable[int] = ()) -> ChipDefinition:
    """Build a ChipDefinition from a parsed document.

    Args:
        document: Mapping with ``connections`` and optional ``channels``/``test_routes``
        bad_channels: Channels to exclude from the graph

    Raises:
        ChipDefinitionError: If the document structure is invalid
    """
    if not isinstance(document, Mapping) or "connections" not in document:
        raise ChipDefinitionError("Chip definition must be a mapping with a 'connections' list")

    channels = [_as_channel(c, "channels") for c in document.get("channels") or []]
    edges: list[tuple[ChannelID, ChannelID]] = []
    for connection in document["connections"] or []:
        if not isinstance(connection, list | tuple) or len(connection) != 2:
            raise ChipDefinitionError(f"connections: expected [source, target] pairs, got {connection!r}")
        edges.append((_as_channel(connection[0], "connections"), _as_channel(connection[1], "connections")))

    try:
        graph = ChannelGraph.from_edges(edges, channels=channels)
    except GraphError as e:
        raise ChipDefinitionError(str(e)) from e

    routes: dict[str, tuple[ChannelID, ...]] = {}
    for name, waypoints in (document.get("test_routes") or {}).items():
        if not isinstance(waypoints, list) or not waypoints:
            raise ChipDefinitionError(f"test_routes.{name}: expected a non-empty list of channels")
        routes[str(name)] = tuple(_as_channel(w, f"test_routes.{name}") for w in waypoints)

    excluded = tuple(graph.remove_all(bad_channels))
    if excluded:
        logger.info("Excluded bad channels from chip graph", channels=list(excluded))
    return ChipDefinition(graph=graph, test_routes=routes, excluded_channels=excluded)


def load_chip(path: Path, bad_channels: Iterable[int] = ()) -> ChipDefinition:
    """Load a chip definition file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ChipDefinitionError: If the file is not valid YAML/JSON or lacks structure
    """
    if not path.exists():
        raise FileNotFoundError(f"Chip definition not found: {path}")
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ChipDefinitionError(f"Could not parse chip definition {path}: {e}") from e
    chip = parse_chip(document, bad_channels=bad_channels)
    logger.debug(
        "Loaded chip definition",
        path=str(path),
        channels=chip.graph.channel_count,
        connections=chip.graph.connection_count,
    )
    return chip

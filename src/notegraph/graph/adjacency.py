"""Forward/backward adjacency lists built from a flat edge slice."""

from __future__ import annotations

from collections.abc import Iterable
from typing import NamedTuple

from ..errors import NotegraphError
from ..models import Edge, EdgeType


class AdjacencyEntry(NamedTuple):
    """One hop out of (or into) a node."""

    node_id: str
    edge_type: EdgeType
    strength: float = 1.0


class AdjacencyIndex(NamedTuple):
    """forward[source] lists targets; backward[target] lists sources.

    Built once per query and never mutated afterwards.
    """

    forward: dict[str, list[AdjacencyEntry]]
    backward: dict[str, list[AdjacencyEntry]]

    def outgoing(self, node_id: str) -> list[AdjacencyEntry]:
        return self.forward.get(node_id, [])

    def incoming(self, node_id: str) -> list[AdjacencyEntry]:
        return self.backward.get(node_id, [])

    def node_ids(self) -> set[str]:
        """Every node that appears at either end of an indexed edge."""
        return set(self.forward) | set(self.backward)


def build_adjacency(
    edges: Iterable[Edge],
    edge_types: Iterable[EdgeType | str] | None = None,
) -> AdjacencyIndex:
    """Build adjacency lists in one pass over the edges.

    Args:
        edges: Directed edges to index.
        edge_types: Optional allow-set. Edges of other types are skipped in
            both directions.

    Returns:
        AdjacencyIndex. Neighbor lists keep the input edge order.
    """
    allowed = coerce_edge_types(edge_types)

    forward: dict[str, list[AdjacencyEntry]] = {}
    backward: dict[str, list[AdjacencyEntry]] = {}

    for edge in edges:
        if allowed is not None and edge.edge_type not in allowed:
            continue
        forward.setdefault(edge.source_id, []).append(
            AdjacencyEntry(edge.target_id, edge.edge_type, edge.strength)
        )
        backward.setdefault(edge.target_id, []).append(
            AdjacencyEntry(edge.source_id, edge.edge_type, edge.strength)
        )

    return AdjacencyIndex(forward=forward, backward=backward)


def coerce_edge_types(edge_types: Iterable[EdgeType | str] | None) -> set[EdgeType] | None:
    """Normalize an edge-type allow-list, rejecting unknown names."""
    if edge_types is None:
        return None
    allowed: set[EdgeType] = set()
    for value in edge_types:
        try:
            allowed.add(EdgeType(value))
        except ValueError:
            raise NotegraphError.invalid_argument(
                "edge_types",
                value,
                f"must be one of {', '.join(t.value for t in EdgeType)}",
            ) from None
    return allowed

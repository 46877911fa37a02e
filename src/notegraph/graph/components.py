"""Weakly connected components over the note graph."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from ..models import Edge
from .adjacency import AdjacencyIndex, build_adjacency


def _flood(start: str, index: AdjacencyIndex, assigned: set[str]) -> list[str]:
    members = [start]
    assigned.add(start)
    queue = deque([start])
    while queue:
        node_id = queue.popleft()
        for entry in index.outgoing(node_id) + index.incoming(node_id):
            if entry.node_id not in assigned:
                assigned.add(entry.node_id)
                members.append(entry.node_id)
                queue.append(entry.node_id)
    return sorted(members)


def connected_components(
    edges: Iterable[Edge],
    node_ids: Iterable[str] = (),
) -> list[list[str]]:
    """Group nodes into components, ignoring edge direction and type.

    Args:
        edges: Every edge to consider.
        node_ids: Extra nodes (e.g. isolated notes) that become singleton
            components when no edge touches them.

    Returns:
        Components with sorted members, largest first, ties by first member.
    """
    index = build_adjacency(edges)
    all_nodes = index.node_ids() | set(node_ids)

    assigned: set[str] = set()
    components: list[list[str]] = []
    for node_id in sorted(all_nodes):
        if node_id in assigned:
            continue
        components.append(_flood(node_id, index, assigned))

    components.sort(key=lambda members: (-len(members), members[0]))
    return components


def component_containing(node_id: str, edges: Iterable[Edge]) -> list[str]:
    """The component holding node_id; a lone node yields [node_id]."""
    return _flood(node_id, build_adjacency(edges), set())

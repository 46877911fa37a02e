"""Graph-based discovery: related-note suggestions and maps of content."""

from __future__ import annotations

from .config import DEFAULT_BUDGET, DEFAULT_MAX_DEPTH
from .engine import GraphEngine
from .models import ExpandedNode, Suggestion


def _reason(depth: int) -> str:
    return "direct_link" if depth == 1 else f"{depth}_hops"


def _to_suggestions(engine: GraphEngine, expanded: list[ExpandedNode]) -> list[Suggestion]:
    suggestions = []
    for item in expanded:
        node = engine.store.get_node(item.node_id)
        if node is None:
            continue
        suggestions.append(
            Suggestion(
                node=node,
                score=item.score,
                depth=item.depth,
                reason=_reason(item.depth),
                path=item.path,
            )
        )
    return suggestions


def map_of_content(
    engine: GraphEngine,
    node_id: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
    budget: int = DEFAULT_BUDGET,
) -> list[Suggestion]:
    """Every note around node_id, in either direction, best score first."""
    engine.require_node(node_id)
    expanded = engine.expand_graph(
        [node_id],
        max_depth=max_depth,
        budget=budget,
        include_incoming=True,
    )
    return _to_suggestions(engine, [item for item in expanded if item.node_id != node_id])


def suggest_related(
    engine: GraphEngine,
    node_id: str,
    limit: int = 10,
    max_depth: int = DEFAULT_MAX_DEPTH,
    budget: int = DEFAULT_BUDGET,
) -> list[Suggestion]:
    """Notes near node_id that it is not already linked with.

    Neighbors one hop away are dropped since they are already connected.
    """
    suggestions = [
        suggestion
        for suggestion in map_of_content(engine, node_id, max_depth=max_depth, budget=budget)
        if suggestion.depth > 1
    ]
    return suggestions[:limit]

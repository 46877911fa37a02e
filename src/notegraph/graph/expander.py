"""Bounded, decayed-score graph expansion from seed nodes.

One primitive backs retrieval context expansion, connectivity checks,
subgraph extraction, discovery and impact analysis. Scores decay
multiplicatively along a route: a neighbor gets
``parent_score * edge_weight * decay_factor``, so a node d hops from a seed
carries ``seed_score * decay_factor ** d`` over unit-strength edges. When a
node is reachable by several routes the highest-scoring one is kept.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping, Sequence

from ..config import (
    DEFAULT_BUDGET,
    DEFAULT_DECAY_FACTOR,
    DEFAULT_MAX_DEPTH,
    DEFAULT_SCORE_THRESHOLD,
)
from ..errors import NotegraphError
from ..models import Edge, EdgeType, ExpandedNode, ExpansionStats, Seed
from .adjacency import AdjacencyEntry, AdjacencyIndex, build_adjacency

log = logging.getLogger(__name__)


def _validate(max_depth: int, budget: int, decay_factor: float, score_threshold: float) -> None:
    if max_depth < 1:
        raise NotegraphError.invalid_argument("max_depth", max_depth, "must be >= 1")
    if budget < 1:
        raise NotegraphError.invalid_argument("budget", budget, "must be >= 1")
    if not 0.0 < decay_factor <= 1.0:
        raise NotegraphError.invalid_argument("decay_factor", decay_factor, "must be within (0, 1]")
    if score_threshold < 0:
        raise NotegraphError.invalid_argument("score_threshold", score_threshold, "must be >= 0")


def _neighbors(index: AdjacencyIndex, node_id: str, include_incoming: bool) -> list[AdjacencyEntry]:
    if not include_incoming:
        return index.outgoing(node_id)
    return index.outgoing(node_id) + index.incoming(node_id)


def expand(
    seeds: Sequence[Seed],
    index: AdjacencyIndex,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    budget: int = DEFAULT_BUDGET,
    decay_factor: float = DEFAULT_DECAY_FACTOR,
    include_incoming: bool = False,
    score_threshold: float = DEFAULT_SCORE_THRESHOLD,
    edge_weights: Mapping[EdgeType, float] | None = None,
    deadline: float | None = None,
) -> list[ExpandedNode]:
    """Expand outward from seeds, level by level, under a node budget.

    Args:
        seeds: Starting nodes with their initial scores.
        index: Adjacency over the edge types to follow.
        max_depth: Maximum hops from any seed.
        budget: Maximum accumulated nodes, seeds included.
        decay_factor: Per-hop multiplicative discount in (0, 1].
        include_incoming: Also walk edges backwards.
        score_threshold: Propagated scores below this are dropped.
        edge_weights: Optional per-edge-type multipliers on edge strength.
        deadline: Optional time.monotonic() value; checked before each depth
            level, the partial result is returned once it passes.

    Returns:
        Every accumulated node sorted by score descending, then depth, then id.

    Raises:
        NotegraphError: On non-positive depth or budget, decay outside
            (0, 1] or a negative threshold.
    """
    _validate(max_depth, budget, decay_factor, score_threshold)
    if not seeds:
        return []

    accumulated: dict[str, ExpandedNode] = {}
    for seed in seeds:
        existing = accumulated.get(seed.node_id)
        if existing is not None:
            if seed.score > existing.score:
                accumulated[seed.node_id] = ExpandedNode(
                    node_id=seed.node_id, depth=0, score=seed.score, path=[seed.node_id]
                )
            continue
        if len(accumulated) >= budget:
            log.debug("Expansion budget %d reached while loading seeds", budget)
            break
        accumulated[seed.node_id] = ExpandedNode(
            node_id=seed.node_id, depth=0, score=seed.score, path=[seed.node_id]
        )

    frontier = list(accumulated)

    for depth in range(1, max_depth + 1):
        if len(accumulated) >= budget or not frontier:
            break
        if deadline is not None and time.monotonic() >= deadline:
            log.debug("Expansion deadline passed before depth %d, returning partial result", depth)
            break

        next_frontier: list[str] = []
        for node_id in frontier:
            if len(accumulated) >= budget:
                break
            current = accumulated[node_id]

            for entry in _neighbors(index, node_id, include_incoming):
                if len(accumulated) >= budget:
                    break

                weight = entry.strength
                if edge_weights is not None:
                    weight *= edge_weights.get(entry.edge_type, 1.0)
                new_score = current.score * weight * decay_factor
                if new_score < score_threshold:
                    continue

                existing = accumulated.get(entry.node_id)
                if existing is None or new_score > existing.score:
                    accumulated[entry.node_id] = ExpandedNode(
                        node_id=entry.node_id,
                        depth=depth,
                        score=new_score,
                        path=[*current.path, entry.node_id],
                        via_edge_type=entry.edge_type,
                    )
                    if existing is None:
                        next_frontier.append(entry.node_id)

        frontier = next_frontier

    if len(accumulated) >= budget:
        log.debug("Expansion stopped at budget %d", budget)

    return sorted(accumulated.values(), key=lambda n: (-n.score, n.depth, n.node_id))


def expand_edges(
    seeds: Sequence[Seed],
    edges: Iterable[Edge],
    *,
    edge_types: Iterable[EdgeType | str] | None = None,
    **options,
) -> list[ExpandedNode]:
    """Build the adjacency for an edge slice and expand over it."""
    return expand(seeds, build_adjacency(edges, edge_types), **options)


def expansion_stats(results: Sequence[ExpandedNode]) -> ExpansionStats:
    """Summarize an expansion: size, deepest hop, mean score, edge types used."""
    if not results:
        return ExpansionStats()

    edge_type_counts: dict[str, int] = {}
    for node in results:
        if node.via_edge_type is not None:
            key = node.via_edge_type.value
            edge_type_counts[key] = edge_type_counts.get(key, 0) + 1

    return ExpansionStats(
        total_nodes=len(results),
        max_depth=max(node.depth for node in results),
        avg_score=sum(node.score for node in results) / len(results),
        edge_type_counts=edge_type_counts,
    )

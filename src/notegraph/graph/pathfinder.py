"""Shortest and K-shortest diverse paths between notes.

Single shortest paths come from a bidirectional BFS. K paths come from Yen's
algorithm run on top of that BFS, with two extra filters so the answers read
as genuinely different routes:

- a hop cap (shortest hop count + max_extra_hops), and
- a Jaccard node-overlap ceiling against every already accepted path.

Path scores are cosmetic (hops + per-edge-type penalty) and only order
candidates of equal hop count.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence

from ..config import (
    DEFAULT_EDGE_PENALTIES,
    DEFAULT_MAX_CANDIDATES,
    DEFAULT_MAX_EXTRA_HOPS,
    DEFAULT_OVERLAP_THRESHOLD,
    DEFAULT_PATH_COUNT,
    DEFAULT_PATH_EDGE_TYPES,
    DEFAULT_PATH_MAX_DEPTH,
)
from ..errors import NotegraphError
from ..models import (
    Edge,
    EdgePenalties,
    EdgeType,
    KShortestPathsResult,
    PathResult,
    PathSearchReason,
)
from .adjacency import AdjacencyIndex, build_adjacency

log = logging.getLogger(__name__)

# (source_id, target_id) of a directed edge
EdgeKey = tuple[str, str]

# node -> (parent, edge type between node and parent, depth from that side's root)
_VisitMap = dict[str, tuple[str | None, EdgeType | None, int]]


def bidirectional_bfs(
    start_id: str,
    end_id: str,
    index: AdjacencyIndex,
    max_depth: int,
    disabled_edges: set[EdgeKey] | None = None,
    disabled_nodes: set[str] | None = None,
) -> tuple[list[str], list[EdgeType]] | None:
    """Find one shortest directed path from start_id to end_id.

    Expands whichever frontier is smaller. The first meeting point is only a
    candidate: expansion continues until the two search depths together reach
    the best distance found, so an asymmetric meeting cannot hide a shorter one.

    Args:
        start_id: Path start.
        end_id: Path end.
        index: Prebuilt adjacency.
        max_depth: Per-side depth ceiling; the combined search stops at 2 * max_depth.
        disabled_edges: (source, target) pairs that may not be traversed.
        disabled_nodes: Nodes that may not be entered.

    Returns:
        (path, edge types) or None when no path exists within the constraints.
    """
    if start_id == end_id:
        return [start_id], []

    blocked_edges = disabled_edges or set()
    blocked_nodes = disabled_nodes or set()
    if start_id in blocked_nodes or end_id in blocked_nodes:
        return None

    forward_visited: _VisitMap = {start_id: (None, None, 0)}
    backward_visited: _VisitMap = {end_id: (None, None, 0)}
    forward_frontier = [start_id]
    backward_frontier = [end_id]
    forward_depth = 0
    backward_depth = 0

    best_distance = math.inf
    meeting_node: str | None = None

    while (forward_frontier or backward_frontier) and forward_depth + backward_depth < best_distance:
        if forward_depth + backward_depth >= max_depth * 2:
            break

        expand_forward = bool(forward_frontier) and (
            not backward_frontier or len(forward_frontier) <= len(backward_frontier)
        )

        next_frontier: list[str] = []
        if expand_forward:
            forward_depth += 1
            for node_id in forward_frontier:
                for entry in index.outgoing(node_id):
                    neighbor = entry.node_id
                    if neighbor in blocked_nodes or (node_id, neighbor) in blocked_edges:
                        continue
                    if neighbor in forward_visited:
                        continue
                    forward_visited[neighbor] = (node_id, entry.edge_type, forward_depth)
                    next_frontier.append(neighbor)

                    other_side = backward_visited.get(neighbor)
                    if other_side is not None:
                        distance = forward_depth + other_side[2]
                        if distance < best_distance:
                            best_distance = distance
                            meeting_node = neighbor
            forward_frontier = next_frontier
        else:
            backward_depth += 1
            for node_id in backward_frontier:
                for entry in index.incoming(node_id):
                    neighbor = entry.node_id
                    if neighbor in blocked_nodes or (neighbor, node_id) in blocked_edges:
                        continue
                    if neighbor in backward_visited:
                        continue
                    backward_visited[neighbor] = (node_id, entry.edge_type, backward_depth)
                    next_frontier.append(neighbor)

                    other_side = forward_visited.get(neighbor)
                    if other_side is not None:
                        distance = backward_depth + other_side[2]
                        if distance < best_distance:
                            best_distance = distance
                            meeting_node = neighbor
            backward_frontier = next_frontier

    if meeting_node is None:
        return None

    return _reconstruct(meeting_node, forward_visited, backward_visited)


def _reconstruct(
    meeting_node: str,
    forward_visited: _VisitMap,
    backward_visited: _VisitMap,
) -> tuple[list[str], list[EdgeType]]:
    path: list[str] = []
    edges: list[EdgeType] = []

    # start .. meeting, walked backwards then flipped
    current: str | None = meeting_node
    while current is not None:
        parent, edge_type, _ = forward_visited[current]
        path.append(current)
        if edge_type is not None:
            edges.append(edge_type)
        current = parent
    path.reverse()
    edges.reverse()

    # meeting .. end
    parent, edge_type, _ = backward_visited[meeting_node]
    while parent is not None:
        path.append(parent)
        edges.append(edge_type)  # type: ignore[arg-type]
        parent, edge_type, _ = backward_visited[parent]

    return path, edges


def jaccard_overlap(
    path_a: Sequence[str],
    path_b: Sequence[str],
    exclude_endpoints: bool = False,
) -> float:
    """Share of distinct nodes two paths have in common.

    With exclude_endpoints, first and last nodes are dropped first so short
    paths between the same endpoints are not trivially "identical". Two empty
    node sets count as a full overlap (1.0).
    """
    if exclude_endpoints and (len(path_a) >= 2 or len(path_b) >= 2):
        nodes_a = set(path_a[1:-1])
        nodes_b = set(path_b[1:-1])
    else:
        nodes_a = set(path_a)
        nodes_b = set(path_b)

    union = nodes_a | nodes_b
    if not union:
        return 1.0
    return len(nodes_a & nodes_b) / len(union)


def path_score(
    edges: Sequence[EdgeType | str],
    penalties: EdgePenalties = DEFAULT_EDGE_PENALTIES,
) -> float:
    """Cosmetic score: hop count plus the penalty of every edge."""
    return len(edges) + sum(penalties.penalty(edge_type) for edge_type in edges)


def is_simple_path(path: Sequence[str]) -> bool:
    """True when no node repeats."""
    return len(set(path)) == len(path)


def _candidate_sort_key(candidate: PathResult) -> tuple[int, float, str]:
    return (candidate.hop_count, candidate.score, "|".join(candidate.path))


def _make_result(
    path: list[str],
    edges: list[EdgeType],
    penalties: EdgePenalties,
) -> PathResult:
    return PathResult(
        path=path,
        edges=edges,
        hop_count=len(path) - 1,
        score=path_score(edges, penalties),
    )


def _too_similar(candidate: PathResult, accepted: list[PathResult], threshold: float) -> bool:
    for other in accepted:
        overlap = jaccard_overlap(
            candidate.path,
            other.path,
            exclude_endpoints=len(candidate.path) <= 4 or len(other.path) <= 4,
        )
        if overlap > threshold:
            return True
    return False


def _require(condition: bool, name: str, value: object, requirement: str) -> None:
    if not condition:
        raise NotegraphError.invalid_argument(name, value, requirement)


def find_shortest_path(
    start_id: str,
    end_id: str,
    edges: Iterable[Edge],
    *,
    edge_types: Iterable[EdgeType | str] | None = None,
    max_depth: int = DEFAULT_PATH_MAX_DEPTH,
    penalties: EdgePenalties = DEFAULT_EDGE_PENALTIES,
) -> PathResult | None:
    """Shortest directed path between two nodes, or None."""
    _require(max_depth >= 1, "max_depth", max_depth, "must be >= 1")

    index = build_adjacency(edges, edge_types)
    found = bidirectional_bfs(start_id, end_id, index, max_depth)
    if found is None:
        return None
    return _make_result(found[0], found[1], penalties)


def find_k_shortest_paths(
    start_id: str,
    end_id: str,
    edges: Iterable[Edge],
    *,
    k: int = DEFAULT_PATH_COUNT,
    edge_types: Iterable[EdgeType | str] | None = DEFAULT_PATH_EDGE_TYPES,
    max_depth: int = DEFAULT_PATH_MAX_DEPTH,
    overlap_threshold: float = DEFAULT_OVERLAP_THRESHOLD,
    max_candidates: int = DEFAULT_MAX_CANDIDATES,
    max_extra_hops: int = DEFAULT_MAX_EXTRA_HOPS,
    penalties: EdgePenalties = DEFAULT_EDGE_PENALTIES,
) -> KShortestPathsResult:
    """Up to k short, mutually diverse simple paths (Yen's algorithm).

    Args:
        start_id: Path start.
        end_id: Path end.
        edges: Edge slice to search; filtered by edge_types (None keeps all).
        k: Number of paths wanted.
        max_depth: Per-side BFS depth ceiling.
        overlap_threshold: Maximum Jaccard overlap with any accepted path.
        max_candidates: Candidate pool cap.
        max_extra_hops: Accepted paths are at most this much longer than the shortest.
        penalties: Edge penalty table for the cosmetic score.

    Returns:
        KShortestPathsResult with paths in acceptance order and the stop reason.
    """
    _require(k >= 1, "k", k, "must be >= 1")
    _require(max_depth >= 1, "max_depth", max_depth, "must be >= 1")
    _require(0.0 <= overlap_threshold <= 1.0, "overlap_threshold", overlap_threshold, "must be within [0, 1]")
    _require(max_candidates >= 1, "max_candidates", max_candidates, "must be >= 1")
    _require(max_extra_hops >= 0, "max_extra_hops", max_extra_hops, "must be >= 0")

    index = build_adjacency(edges, edge_types)

    first = bidirectional_bfs(start_id, end_id, index, max_depth)
    if first is None:
        log.debug("No path from %s to %s", start_id, end_id)
        return KShortestPathsResult(paths=[], reason=PathSearchReason.NO_PATH)

    shortest = _make_result(first[0], first[1], penalties)
    max_allowed_hops = shortest.hop_count + max_extra_hops

    accepted: list[PathResult] = [shortest]
    candidates: list[PathResult] = []
    seen_paths: set[tuple[str, ...]] = {tuple(shortest.path)}

    i = 0
    while i < len(accepted) and len(accepted) < k:
        current = accepted[i]

        for spur_index in range(len(current.path) - 1):
            spur_node = current.path[spur_index]
            root_path = current.path[: spur_index + 1]
            root_edges = current.edges[:spur_index]

            # Block the next hop of every accepted path sharing this root
            disabled_edges: set[EdgeKey] = {
                (path.path[spur_index], path.path[spur_index + 1])
                for path in accepted
                if len(path.path) > spur_index + 1 and path.path[: spur_index + 1] == root_path
            }
            # Root nodes before the spur may not be revisited
            disabled_nodes = set(root_path[:-1])

            spur = bidirectional_bfs(
                spur_node,
                end_id,
                index,
                max_depth - spur_index,
                disabled_edges,
                disabled_nodes,
            )
            if spur is None or len(spur[0]) < 2:
                continue

            total_path = root_path[:-1] + spur[0]
            key = tuple(total_path)
            if (
                key in seen_paths
                or not is_simple_path(total_path)
                or len(total_path) - 1 > max_allowed_hops
            ):
                continue

            seen_paths.add(key)
            candidates.append(_make_result(total_path, root_edges + spur[1], penalties))

            if len(candidates) > max_candidates:
                candidates.sort(key=_candidate_sort_key)
                del candidates[max_candidates:]

        if candidates:
            candidates.sort(key=_candidate_sort_key)
            for position, candidate in enumerate(candidates):
                if not _too_similar(candidate, accepted, overlap_threshold):
                    accepted.append(candidate)
                    del candidates[position]
                    break

        i += 1

    if len(accepted) >= k:
        reason = PathSearchReason.FOUND_ALL
    elif not candidates:
        reason = PathSearchReason.EXHAUSTED_CANDIDATES
    else:
        reason = PathSearchReason.DIVERSITY_FILTER

    log.debug(
        "K-shortest %s -> %s: %d/%d paths (%s), %d candidates left",
        start_id,
        end_id,
        len(accepted),
        k,
        reason.value,
        len(candidates),
    )
    return KShortestPathsResult(paths=accepted, reason=reason)

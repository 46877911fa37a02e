"""Graph query facade.

Each query pulls the edge slice it needs from the store once, builds an
adjacency index for that call and hands it to the traversal core.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from typing import Literal

from .config import (
    CONNECTIVITY_BUDGET,
    DEFAULT_BUDGET,
    DEFAULT_DECAY_FACTOR,
    DEFAULT_EDGE_PENALTIES,
    DEFAULT_HUB_THRESHOLD,
    DEFAULT_MAX_CANDIDATES,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_EXTRA_HOPS,
    DEFAULT_OVERLAP_THRESHOLD,
    DEFAULT_PATH_COUNT,
    DEFAULT_PATH_EDGE_TYPES,
    DEFAULT_PATH_MAX_DEPTH,
    DEFAULT_SCORE_THRESHOLD,
    SUBGRAPH_BUDGET,
)
from .errors import NotegraphError
from .graph import (
    build_adjacency,
    component_containing,
    connected_components,
    expand,
    find_k_shortest_paths,
    find_shortest_path,
)
from .models import (
    BacklinkResult,
    Degree,
    EdgePenalties,
    EdgeType,
    ExpandedNode,
    GraphStats,
    HubNode,
    KShortestPathsResult,
    NeighborResult,
    Node,
    PathResult,
    Seed,
    Subgraph,
)
from .store import GraphStore

log = logging.getLogger(__name__)

Direction = Literal["in", "out", "both"]
EdgeTypes = Iterable[EdgeType | str] | None


class GraphEngine:
    """Backlinks, neighbors, paths, expansion and structure queries over a GraphStore."""

    def __init__(self, store: GraphStore, penalties: EdgePenalties = DEFAULT_EDGE_PENALTIES) -> None:
        self.store = store
        self.penalties = penalties

    def require_node(self, node_id: str) -> Node:
        node = self.store.get_node(node_id)
        if node is None:
            raise NotegraphError.node_not_found(node_id)
        return node

    # =========================================================================
    # Backlinks and neighbors
    # =========================================================================

    def get_backlinks(self, node_id: str) -> list[BacklinkResult]:
        self.require_node(node_id)
        results = []
        for edge in self.store.find_backlinks(node_id):
            source = self.store.get_node(edge.source_id)
            if source is not None:
                results.append(BacklinkResult(source=source, edge=edge))
        return sorted(results, key=lambda r: r.source.node_id)

    def get_neighbors(
        self,
        node_id: str,
        direction: Direction = "both",
        edge_types: EdgeTypes = None,
    ) -> list[NeighborResult]:
        """Adjacent notes, outgoing first, each group sorted by node id."""
        self.require_node(node_id)
        results: list[NeighborResult] = []

        if direction in ("out", "both"):
            for edge in self.store.find_outgoing(node_id, edge_types):
                node = self.store.get_node(edge.target_id)
                if node is not None:
                    results.append(NeighborResult(node=node, edge=edge, direction="out"))
        if direction in ("in", "both"):
            for edge in self.store.find_incoming(node_id, edge_types):
                node = self.store.get_node(edge.source_id)
                if node is not None:
                    results.append(NeighborResult(node=node, edge=edge, direction="in"))

        order = {"out": 0, "in": 1}
        return sorted(results, key=lambda r: (order[r.direction], r.node.node_id, r.edge.edge_type.value))

    # =========================================================================
    # Degree and structure
    # =========================================================================

    def get_degree(self, node_id: str) -> Degree:
        self.require_node(node_id)
        in_degree = len(self.store.find_incoming(node_id))
        out_degree = len(self.store.find_outgoing(node_id))
        return Degree(in_degree=in_degree, out_degree=out_degree, total=in_degree + out_degree)

    def find_isolated_nodes(self) -> list[Node]:
        """Notes with no edge in either direction."""
        connected = set()
        for edge in self.store.find_all_edges():
            connected.add(edge.source_id)
            connected.add(edge.target_id)
        return [node for node in self.store.all_nodes() if node.node_id not in connected]

    def find_hubs(self, threshold: int = DEFAULT_HUB_THRESHOLD) -> list[HubNode]:
        """Notes with at least `threshold` incoming edges, most linked first."""
        in_degrees = Counter(edge.target_id for edge in self.store.find_all_edges())
        hubs = [
            HubNode(node=node, in_degree=in_degrees[node.node_id])
            for node in self.store.all_nodes()
            if in_degrees[node.node_id] >= threshold
        ]
        return sorted(hubs, key=lambda h: (-h.in_degree, h.node.node_id))

    def find_connected_components(self) -> list[list[str]]:
        return connected_components(self.store.find_all_edges(), self.store.graph.nodes)

    def get_component_containing(self, node_id: str) -> list[str]:
        self.require_node(node_id)
        return component_containing(node_id, self.store.find_all_edges())

    def stats(self) -> GraphStats:
        nodes = self.store.all_nodes()
        edges = self.store.find_all_edges()
        return GraphStats(
            node_count=len(nodes),
            edge_count=len(edges),
            nodes_by_type=dict(sorted(Counter(node.type.value for node in nodes).items())),
            edges_by_type=dict(sorted(Counter(edge.edge_type.value for edge in edges).items())),
            component_count=len(self.find_connected_components()),
            isolated_count=len(self.find_isolated_nodes()),
        )

    # =========================================================================
    # Paths
    # =========================================================================

    def find_shortest_path(
        self,
        start_id: str,
        end_id: str,
        edge_types: EdgeTypes = None,
        max_depth: int = DEFAULT_PATH_MAX_DEPTH,
    ) -> PathResult | None:
        self.require_node(start_id)
        self.require_node(end_id)
        return find_shortest_path(
            start_id,
            end_id,
            self.store.find_all_edges(edge_types),
            max_depth=max_depth,
            penalties=self.penalties,
        )

    def find_k_shortest_paths(
        self,
        start_id: str,
        end_id: str,
        *,
        k: int = DEFAULT_PATH_COUNT,
        edge_types: EdgeTypes = DEFAULT_PATH_EDGE_TYPES,
        max_depth: int = DEFAULT_PATH_MAX_DEPTH,
        overlap_threshold: float = DEFAULT_OVERLAP_THRESHOLD,
        max_candidates: int = DEFAULT_MAX_CANDIDATES,
        max_extra_hops: int = DEFAULT_MAX_EXTRA_HOPS,
    ) -> KShortestPathsResult:
        self.require_node(start_id)
        self.require_node(end_id)
        return find_k_shortest_paths(
            start_id,
            end_id,
            self.store.find_all_edges(edge_types),
            k=k,
            edge_types=None,
            max_depth=max_depth,
            overlap_threshold=overlap_threshold,
            max_candidates=max_candidates,
            max_extra_hops=max_extra_hops,
            penalties=self.penalties,
        )

    # =========================================================================
    # Bounded expansion
    # =========================================================================

    def expand_graph(
        self,
        seeds: Sequence[Seed | str],
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        budget: int = DEFAULT_BUDGET,
        edge_types: EdgeTypes = None,
        decay_factor: float = DEFAULT_DECAY_FACTOR,
        include_incoming: bool = False,
        score_threshold: float = DEFAULT_SCORE_THRESHOLD,
        edge_weights: Mapping[EdgeType, float] | None = None,
        deadline: float | None = None,
    ) -> list[ExpandedNode]:
        """Bounded expansion from seeds; bare ids are seeded with score 1.0."""
        seed_models = [seed if isinstance(seed, Seed) else Seed(node_id=seed) for seed in seeds]
        index = build_adjacency(self.store.find_all_edges(edge_types))
        return expand(
            seed_models,
            index,
            max_depth=max_depth,
            budget=budget,
            decay_factor=decay_factor,
            include_incoming=include_incoming,
            score_threshold=score_threshold,
            edge_weights=edge_weights,
            deadline=deadline,
        )

    def are_connected(
        self,
        node_a: str,
        node_b: str,
        edge_types: EdgeTypes = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> bool:
        """True when node_b is reachable from node_a within max_depth hops."""
        self.require_node(node_a)
        self.require_node(node_b)
        reached = self.expand_graph(
            [node_a],
            max_depth=max_depth,
            budget=CONNECTIVITY_BUDGET,
            edge_types=edge_types,
            score_threshold=0.0,
        )
        return any(node.node_id == node_b for node in reached)

    def extract_subgraph(
        self,
        center_id: str,
        radius: int = 2,
        edge_types: EdgeTypes = None,
    ) -> Subgraph:
        """Nodes within radius of center (either direction) and the edges among them."""
        self.require_node(center_id)
        reached = self.expand_graph(
            [center_id],
            max_depth=radius,
            budget=SUBGRAPH_BUDGET,
            edge_types=edge_types,
            include_incoming=True,
        )
        node_ids = {node.node_id for node in reached}
        edges = [
            edge
            for edge in self.store.find_all_edges(edge_types)
            if edge.source_id in node_ids and edge.target_id in node_ids
        ]
        log.debug("Subgraph around %s: %d nodes, %d edges", center_id, len(node_ids), len(edges))
        return Subgraph(
            center=center_id,
            nodes=self.store.get_nodes(node.node_id for node in reached),
            edges=edges,
        )

"""Graph traversal core: adjacency, path search, bounded expansion, components."""

from .adjacency import AdjacencyEntry, AdjacencyIndex, build_adjacency, coerce_edge_types
from .components import component_containing, connected_components
from .expander import expand, expand_edges, expansion_stats
from .pathfinder import (
    bidirectional_bfs,
    find_k_shortest_paths,
    find_shortest_path,
    is_simple_path,
    jaccard_overlap,
    path_score,
)

__all__ = [
    "AdjacencyEntry",
    "AdjacencyIndex",
    "bidirectional_bfs",
    "build_adjacency",
    "coerce_edge_types",
    "component_containing",
    "connected_components",
    "expand",
    "expand_edges",
    "expansion_stats",
    "find_k_shortest_paths",
    "find_shortest_path",
    "is_simple_path",
    "jaccard_overlap",
    "path_score",
]

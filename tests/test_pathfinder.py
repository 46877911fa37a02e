"""Tests for bidirectional BFS and K-shortest diverse paths."""

import pytest

from conftest import edge
from notegraph.errors import ErrorCode, NotegraphError
from notegraph.graph import (
    bidirectional_bfs,
    build_adjacency,
    find_k_shortest_paths,
    find_shortest_path,
    is_simple_path,
    jaccard_overlap,
    path_score,
)
from notegraph.models import EdgeType, PathSearchReason


@pytest.fixture
def triangle():
    """A -explicit_link-> B -sequence-> C, plus A -semantic-> C."""
    return [
        edge("A", "B", "explicit_link"),
        edge("B", "C", "sequence"),
        edge("A", "C", "semantic"),
    ]


def chain(*nodes: str):
    return [edge(a, b) for a, b in zip(nodes, nodes[1:])]


class TestBidirectionalBFS:
    """Single shortest path search."""

    def test_finds_chain(self):
        index = build_adjacency(chain("a", "b", "c", "d"))
        path, edges = bidirectional_bfs("a", "d", index, max_depth=5)
        assert path == ["a", "b", "c", "d"]
        assert edges == [EdgeType.EXPLICIT_LINK] * 3

    def test_start_equals_end(self):
        index = build_adjacency([])
        assert bidirectional_bfs("a", "a", index, max_depth=3) == (["a"], [])

    def test_respects_direction(self):
        index = build_adjacency(chain("a", "b", "c"))
        assert bidirectional_bfs("c", "a", index, max_depth=5) is None

    def test_combined_depth_ceiling(self):
        index = build_adjacency(chain("a", "b", "c", "d", "e"))
        assert bidirectional_bfs("a", "e", index, max_depth=1) is None
        assert bidirectional_bfs("a", "e", index, max_depth=2) is not None

    def test_prefers_shortest_over_first_meeting(self):
        # Wide fan on one side and a short cut on the other
        edges = chain("s", "x1", "x2", "x3", "t") + [edge("s", "m"), edge("m", "t")]
        for i in range(5):
            edges.append(edge(f"f{i}", "t"))
        index = build_adjacency(edges)

        path, _ = bidirectional_bfs("s", "t", index, max_depth=10)
        assert path == ["s", "m", "t"]

    def test_disabled_edges_and_nodes(self):
        edges = chain("a", "b", "d") + chain("a", "c", "d")
        index = build_adjacency(edges)

        path, _ = bidirectional_bfs("a", "d", index, 5, disabled_edges={("a", "b")})
        assert path == ["a", "c", "d"]

        path, _ = bidirectional_bfs("a", "d", index, 5, disabled_nodes={"c"})
        assert path == ["a", "b", "d"]

        assert bidirectional_bfs("a", "d", index, 5, disabled_nodes={"b", "c"}) is None

    def test_disabled_endpoint(self):
        index = build_adjacency(chain("a", "b"))
        assert bidirectional_bfs("a", "b", index, 5, disabled_nodes={"a"}) is None

    def test_same_length_both_ways_on_symmetric_graph(self):
        edges = []
        for a, b in [("a", "b"), ("b", "c"), ("c", "d"), ("a", "e"), ("e", "d")]:
            edges += [edge(a, b), edge(b, a)]
        index = build_adjacency(edges)

        forward, _ = bidirectional_bfs("a", "d", index, 10)
        backward, _ = bidirectional_bfs("d", "a", index, 10)
        assert len(forward) == len(backward) == 3


class TestScoring:
    """Cosmetic path scores and overlap."""

    def test_path_score_uses_penalties(self):
        assert path_score([EdgeType.EXPLICIT_LINK, EdgeType.SEMANTIC]) == pytest.approx(2.3)

    def test_unlisted_edge_type_gets_default_penalty(self):
        assert path_score([EdgeType.HIERARCHY]) == pytest.approx(1.3)

    def test_empty_path_scores_zero(self):
        assert path_score([]) == 0

    def test_jaccard_plain(self):
        assert jaccard_overlap(["a", "b", "c"], ["a", "d", "c"]) == pytest.approx(0.5)

    def test_jaccard_excluding_endpoints(self):
        assert jaccard_overlap(["a", "b", "c"], ["a", "d", "c"], exclude_endpoints=True) == 0.0

    def test_jaccard_empty_interiors_count_as_identical(self):
        assert jaccard_overlap(["a", "c"], ["a", "c"], exclude_endpoints=True) == 1.0

    def test_is_simple_path(self):
        assert is_simple_path(["a", "b", "c"])
        assert not is_simple_path(["a", "b", "a"])


class TestFindShortestPath:
    """Convenience wrapper returning a PathResult."""

    def test_returns_scored_result(self, triangle):
        result = find_shortest_path("A", "C", triangle)
        assert result.path == ["A", "C"]
        assert result.hop_count == 1
        assert result.score == pytest.approx(1.3)

    def test_edge_type_filter(self, triangle):
        result = find_shortest_path("A", "C", triangle, edge_types=["explicit_link", "sequence"])
        assert result.path == ["A", "B", "C"]

    def test_no_path(self, triangle):
        assert find_shortest_path("C", "A", triangle) is None

    def test_rejects_non_positive_depth(self, triangle):
        with pytest.raises(NotegraphError):
            find_shortest_path("A", "C", triangle, max_depth=0)


class TestFindKShortestPaths:
    """Yen's algorithm with hop cap and diversity filter."""

    def test_direct_semantic_path_first(self, triangle):
        result = find_k_shortest_paths("A", "C", triangle, k=2)

        assert result.reason == PathSearchReason.FOUND_ALL
        assert [p.path for p in result.paths] == [["A", "C"], ["A", "B", "C"]]
        assert result.paths[0].score == pytest.approx(1.3)
        assert result.paths[1].score == pytest.approx(2.1)

    def test_excluding_semantic_leaves_single_path(self, triangle):
        result = find_k_shortest_paths(
            "A", "C", triangle, k=2, edge_types=[EdgeType.EXPLICIT_LINK, EdgeType.SEQUENCE]
        )

        assert len(result.paths) == 1
        assert result.paths[0].path == ["A", "B", "C"]
        assert result.paths[0].hop_count == 2
        assert result.paths[0].score == pytest.approx(2.1)
        assert result.reason == PathSearchReason.EXHAUSTED_CANDIDATES

    def test_no_edges(self):
        result = find_k_shortest_paths("A", "B", [], k=3)
        assert result.paths == []
        assert result.reason == PathSearchReason.NO_PATH
        assert not result.found

    def test_k_one(self, triangle):
        result = find_k_shortest_paths("A", "C", triangle, k=1)
        assert len(result.paths) == 1
        assert result.reason == PathSearchReason.FOUND_ALL

    def test_hop_cap(self):
        edges = [edge("a", "z")] + chain("a", "b", "c", "d", "e", "z")
        result = find_k_shortest_paths("a", "z", edges, k=3, max_extra_hops=2)

        assert [p.path for p in result.paths] == [["a", "z"]]
        assert result.reason == PathSearchReason.EXHAUSTED_CANDIDATES

        relaxed = find_k_shortest_paths("a", "z", edges, k=3, max_extra_hops=4)
        assert len(relaxed.paths) == 2

    def test_diversity_filter_rejects_near_duplicates(self):
        edges = chain("A", "B", "C", "D", "E") + chain("C", "X", "E")

        strict = find_k_shortest_paths("A", "E", edges, k=2, overlap_threshold=0.5)
        assert [p.path for p in strict.paths] == [["A", "B", "C", "D", "E"]]
        assert strict.reason == PathSearchReason.DIVERSITY_FILTER

        loose = find_k_shortest_paths("A", "E", edges, k=2, overlap_threshold=0.7)
        assert [p.path for p in loose.paths] == [["A", "B", "C", "D", "E"], ["A", "B", "C", "X", "E"]]

    def test_paths_are_simple_and_sorted_by_hops(self):
        edges = []
        for a, b in [("s", "a"), ("a", "t"), ("s", "b"), ("b", "c"), ("c", "t"), ("a", "b"), ("b", "a"), ("c", "s")]:
            edges.append(edge(a, b))

        result = find_k_shortest_paths("s", "t", edges, k=5, overlap_threshold=1.0)

        assert result.paths
        hops = [p.hop_count for p in result.paths]
        assert hops == sorted(hops)
        assert all(is_simple_path(p.path) for p in result.paths)
        assert all(p.path[0] == "s" and p.path[-1] == "t" for p in result.paths)
        assert len({tuple(p.path) for p in result.paths}) == len(result.paths)

    def test_candidate_cap_keeps_fan_out_order(self):
        edges = []
        for mid in ("m1", "m2", "m3", "m4"):
            edges += chain("s", mid, "t")

        capped = find_k_shortest_paths("s", "t", edges, k=4, max_candidates=1)
        uncapped = find_k_shortest_paths("s", "t", edges, k=4, max_candidates=100)

        assert [p.path for p in capped.paths] == [p.path for p in uncapped.paths]
        assert [p.path for p in capped.paths] == [["s", f"m{i}", "t"] for i in range(1, 5)]
        assert capped.reason == PathSearchReason.FOUND_ALL

    def test_candidate_cap_evicts_longest_first(self):
        # Shortest s-a-t; spurring at s gives a 3-hop route, spurring at a a 4-hop one
        edges = chain("s", "a", "t") + chain("s", "x", "y", "t") + chain("a", "p", "q", "t")

        uncapped = find_k_shortest_paths("s", "t", edges, k=3, overlap_threshold=1.0)
        assert [p.path for p in uncapped.paths] == [
            ["s", "a", "t"],
            ["s", "x", "y", "t"],
            ["s", "a", "p", "q", "t"],
        ]
        assert uncapped.reason == PathSearchReason.FOUND_ALL

        capped = find_k_shortest_paths("s", "t", edges, k=3, overlap_threshold=1.0, max_candidates=1)
        assert [p.path for p in capped.paths] == [["s", "a", "t"], ["s", "x", "y", "t"]]
        assert capped.reason == PathSearchReason.EXHAUSTED_CANDIDATES

    def test_edges_match_path_length(self, triangle):
        result = find_k_shortest_paths("A", "C", triangle, k=2)
        for p in result.paths:
            assert len(p.edges) == len(p.path) - 1

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"k": 0},
            {"max_depth": 0},
            {"overlap_threshold": 1.5},
            {"overlap_threshold": -0.1},
            {"max_candidates": 0},
            {"max_extra_hops": -1},
        ],
    )
    def test_invalid_arguments(self, triangle, kwargs):
        with pytest.raises(NotegraphError) as exc_info:
            find_k_shortest_paths("A", "C", triangle, **kwargs)
        assert exc_info.value.code == ErrorCode.INVALID_ARGUMENT

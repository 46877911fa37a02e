"""Tests for adjacency index construction and weakly connected components."""

import pytest

from conftest import edge
from notegraph.errors import ErrorCode, NotegraphError
from notegraph.graph import build_adjacency, coerce_edge_types, component_containing, connected_components
from notegraph.models import EdgeType


class TestBuildAdjacency:
    """Forward/backward lists from a flat edge list."""

    def test_forward_and_backward(self):
        index = build_adjacency([edge("a", "b"), edge("a", "c", "sequence"), edge("c", "b")])

        assert [e.node_id for e in index.outgoing("a")] == ["b", "c"]
        assert [e.node_id for e in index.incoming("b")] == ["a", "c"]
        assert index.outgoing("a")[1].edge_type == EdgeType.SEQUENCE

    def test_unknown_node_has_no_neighbors(self):
        index = build_adjacency([edge("a", "b")])
        assert index.outgoing("zzz") == []
        assert index.incoming("zzz") == []

    def test_edge_type_filter_applies_both_directions(self):
        index = build_adjacency(
            [edge("a", "b"), edge("a", "c", "semantic")],
            edge_types=["explicit_link"],
        )
        assert [e.node_id for e in index.outgoing("a")] == ["b"]
        assert index.incoming("c") == []

    def test_strength_is_carried(self):
        index = build_adjacency([edge("a", "b", strength=0.4)])
        assert index.outgoing("a")[0].strength == 0.4

    def test_node_ids(self):
        index = build_adjacency([edge("a", "b"), edge("c", "d")])
        assert index.node_ids() == {"a", "b", "c", "d"}

    def test_rebuild_is_identical(self):
        edges = [edge("c", "a"), edge("a", "c", "sequence"), edge("a", "b"), edge("b", "a", "causes")]

        first = build_adjacency(edges)
        second = build_adjacency(edges)

        assert first == second
        assert list(first.forward) == list(second.forward) == ["c", "a", "b"]
        assert [e.node_id for e in first.outgoing("a")] == ["c", "b"]

    def test_empty_edges(self):
        index = build_adjacency([])
        assert index.node_ids() == set()


class TestCoerceEdgeTypes:
    """Edge type allow-list normalization."""

    def test_none_means_all(self):
        assert coerce_edge_types(None) is None

    def test_strings_and_enums(self):
        assert coerce_edge_types(["sequence", EdgeType.CAUSES]) == {EdgeType.SEQUENCE, EdgeType.CAUSES}

    def test_unknown_type_raises(self):
        with pytest.raises(NotegraphError) as exc_info:
            coerce_edge_types(["friendship"])
        assert exc_info.value.code == ErrorCode.INVALID_ARGUMENT


class TestConnectedComponents:
    """Undirected grouping of nodes."""

    def test_direction_is_ignored(self):
        components = connected_components([edge("a", "b"), edge("c", "b"), edge("x", "y")])
        assert components == [["a", "b", "c"], ["x", "y"]]

    def test_isolated_nodes_become_singletons(self):
        components = connected_components([edge("a", "b")], node_ids=["a", "b", "lonely"])
        assert components == [["a", "b"], ["lonely"]]

    def test_ties_ordered_by_first_member(self):
        components = connected_components([edge("m", "n"), edge("b", "c")])
        assert components == [["b", "c"], ["m", "n"]]

    def test_empty_graph(self):
        assert connected_components([]) == []

    def test_component_containing(self):
        edges = [edge("a", "b"), edge("c", "b"), edge("x", "y")]
        assert component_containing("c", edges) == ["a", "b", "c"]
        assert component_containing("solo", edges) == ["solo"]

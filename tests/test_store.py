"""Tests for vault scanning, graph building, caching and node resolution."""

import json
import os
from pathlib import Path

import pytest

from conftest import create_note
from notegraph.errors import ErrorCode, NotegraphError
from notegraph.models import EdgeType, GraphSnapshot, Node, NodeType
from notegraph.store import (
    CACHE_FILENAME,
    GraphStore,
    VaultState,
    build_graph,
    discover_notes,
    ensure_graph,
    load_graph,
    load_notes,
)


def edge_keys(graph: GraphSnapshot) -> set[tuple[str, str, EdgeType]]:
    return {(e.source_id, e.target_id, e.edge_type) for e in graph.edges}


class TestDiscovery:
    """Finding and parsing notes."""

    def test_discovers_sorted_markdown(self, tmp_vault: Path):
        create_note(tmp_vault, "b.md", content="b")
        create_note(tmp_vault, "dir/a.md", content="a")
        (tmp_vault / "readme.txt").write_text("not a note")

        files = discover_notes(tmp_vault)
        assert [f.relative_to(tmp_vault).as_posix() for f in files] == ["b.md", "dir/a.md"]

    def test_excludes_patterns(self, tmp_vault: Path):
        create_note(tmp_vault, "keep.md", content="x")
        create_note(tmp_vault, ".notegraph/cached.md", content="x")
        create_note(tmp_vault, "drafts/wip.md", content="x")

        files = discover_notes(tmp_vault, exclude=[".notegraph/**", "drafts/*"])
        assert [f.name for f in files] == ["keep.md"]

    def test_missing_vault(self, tmp_path: Path):
        assert discover_notes(tmp_path / "nope") == []

    def test_unparsable_notes_are_skipped(self, tmp_vault: Path):
        create_note(tmp_vault, "good.md", title="Good", content="fine")
        (tmp_vault / "bad.md").write_text("---\ntype: spaceship\n---\nbody\n")

        notes = load_notes(tmp_vault)
        assert [n.node_id for n in notes] == ["good.md"]

    def test_strict_raises_parse_error(self, tmp_vault: Path):
        create_note(tmp_vault, "good.md", title="Good", content="fine")
        (tmp_vault / "bad.md").write_text("---\ntype: spaceship\n---\nbody\n")

        with pytest.raises(NotegraphError) as exc_info:
            load_notes(tmp_vault, strict=True)
        assert exc_info.value.code == ErrorCode.PARSE_ERROR
        assert exc_info.value.details["path"] == "bad.md"


class TestBuildGraph:
    """Nodes and typed edges from notes."""

    def test_nodes(self, sample_vault: Path):
        graph = build_graph(sample_vault)

        assert set(graph.nodes) == {
            "history/timeline.md",
            "machines/engine.md",
            "machines/index.md",
            "misc/orphan.md",
            "people/ada.md",
            "people/babbage.md",
        }
        ada = graph.nodes["people/ada.md"]
        assert ada.title == "Ada Lovelace"
        assert ada.type == NodeType.CHARACTER
        assert ada.aliases == ["Ada"]
        assert ada.tags == ["math"]

    def test_edges(self, sample_vault: Path):
        graph = build_graph(sample_vault)

        assert edge_keys(graph) == {
            ("people/ada.md", "people/babbage.md", EdgeType.EXPLICIT_LINK),
            ("people/ada.md", "machines/engine.md", EdgeType.EXPLICIT_LINK),
            ("people/babbage.md", "machines/engine.md", EdgeType.EXPLICIT_LINK),
            ("machines/engine.md", "machines/index.md", EdgeType.HIERARCHY),
            ("history/timeline.md", "people/ada.md", EdgeType.SEQUENCE),
            ("history/timeline.md", "people/babbage.md", EdgeType.CAUSES),
        }

    def test_relation_strength_kept(self, tmp_vault: Path):
        create_note(tmp_vault, "a.md", title="A", relations=[{"path": "b", "type": "semantic", "strength": 0.4}])
        create_note(tmp_vault, "b.md", title="B")

        graph = build_graph(tmp_vault)
        assert graph.edges[0].strength == 0.4
        assert graph.edges[0].edge_type == EdgeType.SEMANTIC

    def test_duplicate_links_collapse(self, tmp_vault: Path):
        create_note(tmp_vault, "a.md", title="A", content="[[b]] and again [[B]] and [[b.md]]")
        create_note(tmp_vault, "b.md", title="B")

        graph = build_graph(tmp_vault)
        assert len(graph.edges) == 1


class TestGraphCache:
    """JSON cache under the index root."""

    def test_ensure_graph_writes_cache(self, sample_vault: Path, tmp_path: Path):
        graph = ensure_graph(sample_vault)

        cache_file = tmp_path / "index" / CACHE_FILENAME
        assert cache_file.exists()
        payload = json.loads(cache_file.read_text())
        assert payload["vault_mtime"] > 0
        assert payload["note_count"] == 6

        cached, state = load_graph()
        assert cached == graph
        assert state.note_count == 6

    def test_rebuilds_when_note_changes(self, sample_vault: Path):
        ensure_graph(sample_vault)
        create_note(sample_vault, "new.md", title="New", content="[[Machines]]")
        _, state = load_graph()
        new_file = sample_vault / "new.md"
        os.utime(new_file, (state.mtime + 10, state.mtime + 10))

        graph = ensure_graph(sample_vault)
        assert "new.md" in graph.nodes

    def test_rebuilds_when_note_deleted(self, sample_vault: Path):
        assert "misc/orphan.md" in ensure_graph(sample_vault).nodes

        (sample_vault / "misc" / "orphan.md").unlink()

        graph = ensure_graph(sample_vault)
        assert "misc/orphan.md" not in graph.nodes
        assert load_graph()[1].note_count == 5

    def test_cache_without_note_count_is_rebuilt(self, sample_vault: Path, tmp_path: Path):
        ensure_graph(sample_vault)
        cache_file = tmp_path / "index" / CACHE_FILENAME
        payload = json.loads(cache_file.read_text())
        del payload["note_count"]
        payload["graph"]["nodes"].pop("misc/orphan.md")
        cache_file.write_text(json.dumps(payload))

        assert "misc/orphan.md" in ensure_graph(sample_vault).nodes

    def test_corrupt_cache_is_ignored(self, sample_vault: Path, tmp_path: Path):
        cache_dir = tmp_path / "index"
        cache_dir.mkdir(parents=True, exist_ok=True)
        (cache_dir / CACHE_FILENAME).write_text("{not json")

        graph, state = load_graph()
        assert graph.nodes == {}
        assert state == VaultState(0.0, -1)
        assert ensure_graph(sample_vault).nodes


class TestGraphStore:
    """Lookups and identifier resolution."""

    @pytest.fixture
    def store(self, sample_vault: Path) -> GraphStore:
        return GraphStore.from_vault(sample_vault)

    @pytest.mark.parametrize(
        "identifier",
        ["people/ada.md", "people/ada", "Ada Lovelace", "ada lovelace", "Ada", "/people/ada.md"],
    )
    def test_resolve(self, store: GraphStore, identifier: str):
        assert store.resolve(identifier) == "people/ada.md"

    def test_resolve_unknown_suggests(self, store: GraphStore):
        with pytest.raises(NotegraphError) as exc_info:
            store.resolve("Charles Babage")
        assert exc_info.value.code == ErrorCode.NODE_NOT_FOUND
        assert "Charles Babbage" in exc_info.value.details["suggestion"]

    def test_resolve_ambiguous_title(self):
        store = GraphStore(
            GraphSnapshot(
                nodes={
                    "a/x.md": Node(node_id="a/x.md", title="Same", path="a/x.md"),
                    "b/x.md": Node(node_id="b/x.md", title="Same", path="b/x.md"),
                }
            )
        )
        with pytest.raises(NotegraphError) as exc_info:
            store.resolve("Same")
        assert exc_info.value.code == ErrorCode.AMBIGUOUS_MATCH
        assert exc_info.value.details["candidates"] == ["a/x.md", "b/x.md"]

    def test_all_nodes_sorted(self, store: GraphStore):
        ids = [node.node_id for node in store.all_nodes()]
        assert ids == sorted(ids)

    def test_get_nodes_skips_unknown(self, store: GraphStore):
        nodes = store.get_nodes(["people/ada.md", "ghost.md"])
        assert [n.node_id for n in nodes] == ["people/ada.md"]

    def test_edge_queries(self, store: GraphStore):
        assert len(store.find_all_edges()) == 6
        assert len(store.find_all_edges(["explicit_link"])) == 3
        assert {e.target_id for e in store.find_outgoing("history/timeline.md")} == {
            "people/ada.md",
            "people/babbage.md",
        }
        assert {e.source_id for e in store.find_incoming("people/babbage.md")} == {
            "people/ada.md",
            "history/timeline.md",
        }
        assert len(store.find_edges("machines/engine.md")) == 3

    def test_backlinks_only_explicit(self, store: GraphStore):
        assert {e.source_id for e in store.find_backlinks("people/babbage.md")} == {"people/ada.md"}
        assert store.find_backlinks("machines/index.md") == []

    def test_unknown_edge_type(self, store: GraphStore):
        with pytest.raises(NotegraphError):
            store.find_all_edges(["nonsense"])

"""Note graph built from wikilinks and frontmatter, with a JSON cache."""

from __future__ import annotations

import difflib
import json
import logging
from collections.abc import Iterable
from fnmatch import fnmatch
from pathlib import Path
from typing import NamedTuple

from .config import get_exclude_patterns, get_index_root, get_vault_root
from .errors import NotegraphError
from .graph.adjacency import coerce_edge_types
from .models import Edge, EdgeType, GraphSnapshot, Node, NoteChunk, NoteMetadata
from .parser import ParseError, build_title_index, extract_links, parse_note, resolve_link_target

log = logging.getLogger(__name__)

CACHE_FILENAME = "graph.json"


class ParsedNote(NamedTuple):
    node_id: str
    metadata: NoteMetadata
    content: str
    chunks: list[NoteChunk]


def discover_notes(vault_root: Path, exclude: Iterable[str] | None = None) -> list[Path]:
    """Markdown files under vault_root, sorted, minus excluded patterns."""
    if not vault_root.is_dir():
        return []
    patterns = list(exclude) if exclude is not None else get_exclude_patterns()

    files = []
    for md_file in vault_root.rglob("*.md"):
        rel_path = md_file.relative_to(vault_root).as_posix()
        if any(fnmatch(rel_path, pattern) for pattern in patterns):
            continue
        files.append(md_file)
    return sorted(files)


def load_notes(
    vault_root: Path,
    exclude: Iterable[str] | None = None,
    strict: bool = False,
) -> list[ParsedNote]:
    """Parse every note in the vault.

    Unparsable notes are logged and skipped, unless strict is set, in which
    case the first one raises NotegraphError with code PARSE_ERROR.
    """
    notes: list[ParsedNote] = []
    for md_file in discover_notes(vault_root, exclude):
        node_id = md_file.relative_to(vault_root).as_posix()
        try:
            metadata, content, chunks = parse_note(md_file, node_id)
        except ParseError as e:
            if strict:
                raise NotegraphError.parse_error(node_id, e.message) from e
            log.warning("Skipping unparsable note %s", e)
            continue
        notes.append(ParsedNote(node_id, metadata, content, chunks))
    return notes


class VaultState(NamedTuple):
    """Newest note mtime and note count, stored with the graph cache."""

    mtime: float
    note_count: int


_NO_STATE = VaultState(0.0, -1)


def vault_state(vault_root: Path) -> VaultState:
    latest = 0.0
    count = 0
    if not vault_root.exists():
        return VaultState(latest, count)
    for md_file in vault_root.rglob("*.md"):
        try:
            latest = max(latest, md_file.stat().st_mtime)
        except OSError:
            continue
        count += 1
    return VaultState(latest, count)


def build_graph_from_notes(notes: list[ParsedNote]) -> GraphSnapshot:
    """Turn parsed notes into nodes and typed edges.

    Wikilinks become explicit_link edges, `parent` a hierarchy edge, `next`
    a sequence edge and each frontmatter relation an edge of its declared
    type. Links to unknown notes, self-links and duplicates are dropped.
    """
    node_ids = frozenset(note.node_id for note in notes)
    title_index = build_title_index((note.node_id, note.metadata) for note in notes)

    nodes: dict[str, Node] = {}
    edges: list[Edge] = []
    edge_keys: set[tuple[str, str, EdgeType]] = set()

    def add_edge(source: str, target: str | None, edge_type: EdgeType, strength: float = 1.0) -> None:
        if target is None or target == source:
            return
        key = (source, target, edge_type)
        if key in edge_keys:
            return
        edge_keys.add(key)
        edges.append(Edge(source_id=source, target_id=target, edge_type=edge_type, strength=strength))

    def resolve(target: str) -> str | None:
        return resolve_link_target(target, title_index, node_ids)

    for note in notes:
        metadata = note.metadata
        nodes[note.node_id] = Node(
            node_id=note.node_id,
            title=metadata.title or note.node_id,
            path=note.node_id,
            type=metadata.type,
            tags=list(metadata.tags),
            aliases=list(metadata.aliases),
        )

        for target in extract_links(note.content):
            add_edge(note.node_id, resolve(target), EdgeType.EXPLICIT_LINK)

        if metadata.parent:
            add_edge(note.node_id, resolve(metadata.parent), EdgeType.HIERARCHY)
        if metadata.next:
            add_edge(note.node_id, resolve(metadata.next), EdgeType.SEQUENCE)

        for relation in metadata.relations:
            add_edge(note.node_id, resolve(relation.target), relation.type, relation.strength)

    return GraphSnapshot(nodes=nodes, edges=edges)


def build_graph(vault_root: Path | None = None) -> GraphSnapshot:
    """Scan the vault and build its graph."""
    vault_root = vault_root or get_vault_root()
    graph = build_graph_from_notes(load_notes(vault_root))
    log.debug("Built graph with %d nodes, %d edges", len(graph.nodes), len(graph.edges))
    return graph


def _cache_path() -> Path:
    root = get_index_root()
    root.mkdir(parents=True, exist_ok=True)
    return root / CACHE_FILENAME


def load_graph() -> tuple[GraphSnapshot, VaultState]:
    path = _cache_path()
    if not path.exists():
        return GraphSnapshot(), _NO_STATE

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return GraphSnapshot(), _NO_STATE

    state = VaultState(
        float(payload.get("vault_mtime", 0.0)),
        int(payload.get("note_count", -1)),
    )
    graph = GraphSnapshot.model_validate(payload.get("graph", {}))
    return graph, state


def save_graph(graph: GraphSnapshot, state: VaultState) -> None:
    payload = {
        "vault_mtime": state.mtime,
        "note_count": state.note_count,
        "graph": graph.model_dump(mode="json"),
    }
    _cache_path().write_text(json.dumps(payload, indent=2), encoding="utf-8")


def ensure_graph(vault_root: Path | None = None, force: bool = False) -> GraphSnapshot:
    """Return the cached graph, rebuilding it when a note changed, appeared or was deleted."""
    vault_root = vault_root or get_vault_root()
    graph, cached = load_graph()
    current = vault_state(vault_root)

    if (
        force
        or not graph.nodes
        or current.mtime > cached.mtime
        or current.note_count != cached.note_count
    ):
        graph = build_graph(vault_root)
        save_graph(graph, current)

    return graph


class GraphStore:
    """Read access to a graph snapshot: the edge/node source for every query."""

    def __init__(self, graph: GraphSnapshot) -> None:
        self.graph = graph

    @classmethod
    def from_vault(cls, vault_root: Path | None = None) -> GraphStore:
        return cls(ensure_graph(vault_root))

    # -- nodes -----------------------------------------------------------------

    def get_node(self, node_id: str) -> Node | None:
        return self.graph.nodes.get(node_id)

    def get_nodes(self, node_ids: Iterable[str]) -> list[Node]:
        """Nodes for the given ids, skipping unknown ones, in input order."""
        return [self.graph.nodes[node_id] for node_id in node_ids if node_id in self.graph.nodes]

    def all_nodes(self) -> list[Node]:
        return [self.graph.nodes[node_id] for node_id in sorted(self.graph.nodes)]

    def resolve(self, identifier: str) -> str:
        """Resolve a path, title or alias to a node id.

        Raises:
            NotegraphError: NODE_NOT_FOUND (with a close match as suggestion)
                or AMBIGUOUS_MATCH when a title is shared.
        """
        nodes = self.graph.nodes
        cleaned = identifier.strip().replace("\\", "/").strip("/")
        if cleaned in nodes:
            return cleaned
        if f"{cleaned}.md" in nodes:
            return f"{cleaned}.md"

        key = cleaned.lower()
        by_title = sorted(node_id for node_id, node in nodes.items() if node.title.lower() == key)
        if len(by_title) == 1:
            return by_title[0]
        if len(by_title) > 1:
            raise NotegraphError.ambiguous_match(identifier, by_title)

        by_alias = sorted(
            node_id
            for node_id, node in nodes.items()
            if any(alias.lower() == key for alias in node.aliases)
        )
        if len(by_alias) == 1:
            return by_alias[0]
        if len(by_alias) > 1:
            raise NotegraphError.ambiguous_match(identifier, by_alias)

        candidates = list(nodes) + [node.title for node in nodes.values()]
        matches = difflib.get_close_matches(cleaned, candidates, n=1, cutoff=0.6)
        raise NotegraphError.node_not_found(identifier, f"Did you mean '{matches[0]}'?" if matches else None)

    # -- edges -----------------------------------------------------------------

    def find_all_edges(self, edge_types: Iterable[EdgeType | str] | None = None) -> list[Edge]:
        allowed = coerce_edge_types(edge_types)
        if allowed is None:
            return list(self.graph.edges)
        return [edge for edge in self.graph.edges if edge.edge_type in allowed]

    def find_edges(
        self,
        node_ids: str | Iterable[str],
        edge_types: Iterable[EdgeType | str] | None = None,
    ) -> list[Edge]:
        """Edges touching any of the given nodes, in either direction."""
        wanted = {node_ids} if isinstance(node_ids, str) else set(node_ids)
        return [
            edge
            for edge in self.find_all_edges(edge_types)
            if edge.source_id in wanted or edge.target_id in wanted
        ]

    def find_outgoing(self, node_id: str, edge_types: Iterable[EdgeType | str] | None = None) -> list[Edge]:
        return [edge for edge in self.find_all_edges(edge_types) if edge.source_id == node_id]

    def find_incoming(self, node_id: str, edge_types: Iterable[EdgeType | str] | None = None) -> list[Edge]:
        return [edge for edge in self.find_all_edges(edge_types) if edge.target_id == node_id]

    def find_backlinks(self, node_id: str) -> list[Edge]:
        """Explicit links pointing at node_id."""
        return self.find_incoming(node_id, [EdgeType.EXPLICIT_LINK])

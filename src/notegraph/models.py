"""Pydantic models for the note graph."""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator


class EdgeType(str, Enum):
    """Closed set of relation kinds between two notes."""

    EXPLICIT_LINK = "explicit_link"
    BACKLINK = "backlink"
    SEQUENCE = "sequence"
    HIERARCHY = "hierarchy"
    PARTICIPATION = "participation"
    POV_VISIBLE_TO = "pov_visible_to"
    CAUSES = "causes"
    SETUP_PAYOFF = "setup_payoff"
    SEMANTIC = "semantic"
    SEMANTIC_SUGGESTION = "semantic_suggestion"
    MENTION = "mention"
    ALIAS = "alias"


class NodeType(str, Enum):
    """Kind of note a node represents (frontmatter `type`)."""

    NOTE = "note"
    SCENE = "scene"
    CHARACTER = "character"
    LOCATION = "location"
    OBJECT = "object"
    EVENT = "event"
    CONCEPT = "concept"
    MOC = "moc"
    TIMELINE = "timeline"
    DRAFT = "draft"


class EdgePenalties(BaseModel):
    """Cosmetic per-edge-type penalties used for path scoring only."""

    penalties: dict[EdgeType, float] = Field(default_factory=dict)
    default: float = 0.3  # Applied to edge types missing from the table

    def penalty(self, edge_type: EdgeType | str) -> float:
        try:
            key = EdgeType(edge_type)
        except ValueError:
            return self.default
        return self.penalties.get(key, self.default)


# ─────────────────────────────────────────────────────────────────────────────
# Notes and graph storage
# ─────────────────────────────────────────────────────────────────────────────


class RelationLink(BaseModel):
    """A typed relation declared in note frontmatter."""

    target: str = Field(validation_alias=AliasChoices("target", "path"))  # Link target (title or path)
    type: EdgeType
    strength: float = Field(default=1.0, gt=0)


class NoteMetadata(BaseModel):
    """Frontmatter metadata for a note. Every field is optional."""

    title: str | None = None
    type: NodeType = NodeType.NOTE
    tags: list[str] = Field(default_factory=list)
    aliases: list[str] = Field(default_factory=list)
    created: datetime | None = None
    parent: str | None = None  # Hierarchy edge target
    next: str | None = None  # Sequence edge target
    relations: list[RelationLink] = Field(default_factory=list)

    @field_validator("tags", "aliases", mode="before")
    @classmethod
    def _coerce_str_list(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value


class NoteChunk(BaseModel):
    """A section of a note used for lexical indexing and context assembly."""

    node_id: str
    title: str
    section: str | None = None
    content: str
    position: int = 0  # Order within the note

    @property
    def chunk_id(self) -> str:
        return f"{self.node_id}#{self.position}"


class Node(BaseModel):
    """A note in the graph."""

    node_id: str  # Vault-relative path, e.g. "people/ada.md"
    title: str
    path: str
    type: NodeType = NodeType.NOTE
    tags: list[str] = Field(default_factory=list)
    aliases: list[str] = Field(default_factory=list)


class Edge(BaseModel):
    """A directed, typed relation between two notes."""

    source_id: str
    target_id: str
    edge_type: EdgeType
    strength: float = Field(default=1.0, gt=0)


class GraphSnapshot(BaseModel):
    """All nodes and edges built from one scan of the vault."""

    nodes: dict[str, Node] = Field(default_factory=dict)
    edges: list[Edge] = Field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# Traversal results
# ─────────────────────────────────────────────────────────────────────────────


class Seed(BaseModel):
    """A starting node for bounded expansion."""

    node_id: str
    score: float = Field(default=1.0, ge=0)


class ExpandedNode(BaseModel):
    """A node reached by bounded expansion, with its best-scoring route."""

    node_id: str
    depth: int = Field(ge=0)
    score: float = Field(ge=0)
    path: list[str]  # Seed first, this node last
    via_edge_type: EdgeType | None = None  # None for seeds


class ExpansionStats(BaseModel):
    """Summary of an expansion result."""

    total_nodes: int = 0
    max_depth: int = 0
    avg_score: float = 0.0
    edge_type_counts: dict[str, int] = Field(default_factory=dict)


class PathResult(BaseModel):
    """A simple path between two nodes. score = hop_count + sum(edge penalties)."""

    path: list[str]
    edges: list[EdgeType]  # len(path) - 1 entries
    hop_count: int
    score: float


class PathSearchReason(str, Enum):
    """Why a K-shortest-paths search returned what it did."""

    FOUND_ALL = "found_all"  # k paths accepted
    NO_PATH = "no_path"  # endpoints not connected within constraints
    EXHAUSTED_CANDIDATES = "exhausted_candidates"  # no unique candidates left
    DIVERSITY_FILTER = "diversity_filter"  # candidates left, all too similar


class KShortestPathsResult(BaseModel):
    """Outcome of a K-shortest diverse paths search."""

    paths: list[PathResult] = Field(default_factory=list)
    reason: PathSearchReason

    @property
    def found(self) -> bool:
        return bool(self.paths)


# ─────────────────────────────────────────────────────────────────────────────
# Rank fusion
# ─────────────────────────────────────────────────────────────────────────────


class RankedItem(BaseModel):
    """An entry of one source's best-first ranking."""

    id: str
    score: float = 0.0  # Source-specific, opaque to fusion
    source: str = ""


class FusedItem(BaseModel):
    """An item after reciprocal rank fusion."""

    id: str
    score: float
    sources: list[str] = Field(default_factory=list)  # Contributing sources, first-seen order
    ranks: dict[str, int] = Field(default_factory=dict)  # Source -> 1-based rank


# ─────────────────────────────────────────────────────────────────────────────
# Engine query results
# ─────────────────────────────────────────────────────────────────────────────


class BacklinkResult(BaseModel):
    """A note linking to the queried note."""

    source: Node
    edge: Edge


class NeighborResult(BaseModel):
    """A note adjacent to the queried note."""

    node: Node
    edge: Edge
    direction: Literal["in", "out"]


class Degree(BaseModel):
    in_degree: int
    out_degree: int
    total: int


class HubNode(BaseModel):
    node: Node
    in_degree: int


class Subgraph(BaseModel):
    """Nodes around a center and the edges among them."""

    center: str
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)


class GraphStats(BaseModel):
    node_count: int
    edge_count: int
    nodes_by_type: dict[str, int] = Field(default_factory=dict)
    edges_by_type: dict[str, int] = Field(default_factory=dict)
    component_count: int = 0
    isolated_count: int = 0


class ImpactReport(BaseModel):
    """Notes affected by a change to one note."""

    node_id: str
    direct: list[str] = Field(default_factory=list)  # One hop, either direction
    transitive: list[str] = Field(default_factory=list)  # Reachable beyond one hop


class Suggestion(BaseModel):
    """A note surfaced by graph discovery."""

    node: Node
    score: float
    depth: int
    reason: str  # 'direct_link' or '<n>_hops'
    path: list[str] = Field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# Retrieval
# ─────────────────────────────────────────────────────────────────────────────


class LexicalHit(BaseModel):
    """A BM25 hit on a note chunk."""

    chunk_id: str
    node_id: str
    title: str
    section: str | None = None
    content: str
    score: float  # Normalized to 0-1


class ContextChunk(BaseModel):
    """A chunk selected for the assembled context."""

    chunk_id: str
    node_id: str
    title: str
    section: str | None = None
    content: str
    score: float
    match_type: Literal["lexical", "graph", "semantic"]
    sources: list[str] = Field(default_factory=list)


class Provenance(BaseModel):
    """Where context came from, one entry per contributing note."""

    node_id: str
    title: str
    path: str
    contribution: float  # Share of the total fused score, 0-1
    chunk_count: int
    sources: list[str] = Field(default_factory=list)


class RetrievalResult(BaseModel):
    query: str
    chunks: list[ContextChunk] = Field(default_factory=list)
    context: str = ""
    provenance: list[Provenance] = Field(default_factory=list)

"""Context assembly: lexical seeds, graph expansion and rank fusion.

Pipeline for one query:

1. BM25 search over note chunks (2 x max_results hits)
2. Optional node-type / exclusion filters
3. Hits folded into per-node seeds (best chunk score per note, top MAX_SEEDS)
4. Bounded expansion from the seeds, both edge directions
5. Every chunk of each expanded (non-seed) note scored by its node score
6. Weighted RRF over the lexical, graph and optional semantic rankings
7. Top chunks grouped per note into a markdown context, plus provenance
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import NamedTuple, Protocol

from ..config import (
    DEFAULT_DECAY_FACTOR,
    DEFAULT_EXPANSION_EDGE_TYPES,
    DEFAULT_MAX_RESULTS,
    EXPANSION_BUDGET,
    EXPANSION_MAX_DEPTH,
    GRAPH_WEIGHT,
    LEXICAL_WEIGHT,
    MAX_SEEDS,
    RRF_K,
    SEMANTIC_WEIGHT,
)
from ..engine import GraphEngine
from ..models import (
    ContextChunk,
    EdgeType,
    LexicalHit,
    NodeType,
    NoteChunk,
    Provenance,
    RankedItem,
    RetrievalResult,
    Seed,
)
from .fusion import reciprocal_rank_fusion
from .lexical import LexicalIndex

log = logging.getLogger(__name__)


class SemanticSearcher(Protocol):
    """Embedding search plugged into retrieval.

    Implementations return chunk ids (``"<node_id>#<position>"``) best first.
    """

    def search(self, query: str, limit: int) -> list[RankedItem]: ...


class _Scored(NamedTuple):
    chunk: NoteChunk
    score: float


class ContextAssembler:
    """Assembles query context from lexical, graph and semantic retrieval."""

    def __init__(
        self,
        engine: GraphEngine,
        lexical: LexicalIndex,
        chunks: Mapping[str, Sequence[NoteChunk]],
        semantic: SemanticSearcher | None = None,
        rrf_k: float = RRF_K,
        weights: Mapping[str, float] | None = None,
    ):
        """Initialize the assembler.

        Args:
            engine: Graph engine used for expansion and node lookups.
            lexical: BM25 index over the same chunks.
            chunks: Node id -> chunks of that note.
            semantic: Optional embedding searcher.
            rrf_k: RRF damping constant.
            weights: Per-source fusion weights (lexical, graph, semantic).
        """
        self.engine = engine
        self.lexical = lexical
        self.semantic = semantic
        self.rrf_k = rrf_k
        self.weights = dict(
            weights
            or {"lexical": LEXICAL_WEIGHT, "graph": GRAPH_WEIGHT, "semantic": SEMANTIC_WEIGHT}
        )
        self._chunks_by_node = {node_id: list(items) for node_id, items in chunks.items()}
        self._chunks_by_id = {
            chunk.chunk_id: chunk for items in self._chunks_by_node.values() for chunk in items
        }

    def retrieve(
        self,
        query: str,
        max_results: int = DEFAULT_MAX_RESULTS,
        *,
        max_depth: int = EXPANSION_MAX_DEPTH,
        budget: int = EXPANSION_BUDGET,
        edge_types: Iterable[EdgeType | str] | None = DEFAULT_EXPANSION_EDGE_TYPES,
        decay_factor: float = DEFAULT_DECAY_FACTOR,
        node_types: Iterable[NodeType | str] | None = None,
        exclude_node_ids: Iterable[str] | None = None,
    ) -> RetrievalResult:
        """Retrieve the most relevant chunks for a query.

        Args:
            query: Free-text query.
            max_results: Number of chunks in the result.
            max_depth: Expansion depth from the lexical seeds.
            budget: Expansion node budget.
            edge_types: Edge types followed by expansion.
            decay_factor: Per-hop score decay.
            node_types: Only keep lexical hits on notes of these types.
            exclude_node_ids: Notes never used as seeds or returned.

        Returns:
            RetrievalResult with fused chunks, context text and provenance.
        """
        excluded = set(exclude_node_ids or ())
        allowed_types = {NodeType(t) for t in node_types} if node_types is not None else None

        hits = self._filter(self.lexical.search(query, limit=max_results * 2), allowed_types, excluded)
        seeds = self._extract_seeds(hits)

        expanded = []
        if seeds:
            expanded = self.engine.expand_graph(
                seeds,
                max_depth=max_depth,
                budget=budget,
                edge_types=edge_types,
                decay_factor=decay_factor,
                include_incoming=True,
            )

        lexical_scored = [
            _Scored(self._chunks_by_id.get(hit.chunk_id) or self._hit_to_chunk(hit), hit.score)
            for hit in hits
        ]
        graph_scored = [
            _Scored(chunk, node.score)
            for node in expanded
            if node.depth > 0 and node.node_id not in excluded
            for chunk in self._chunks_by_node.get(node.node_id, [])
        ]
        semantic_scored = []
        if self.semantic is not None:
            for item in self.semantic.search(query, max_results * 2):
                chunk = self._chunks_by_id.get(item.id)
                if chunk is not None and chunk.node_id not in excluded:
                    semantic_scored.append(_Scored(chunk, item.score))

        chunks = self._fuse(
            {"lexical": lexical_scored, "graph": graph_scored, "semantic": semantic_scored},
            max_results,
        )
        log.debug(
            "Retrieved %d chunks for %r (%d lexical, %d graph, %d semantic)",
            len(chunks),
            query,
            len(lexical_scored),
            len(graph_scored),
            len(semantic_scored),
        )
        return RetrievalResult(
            query=query,
            chunks=chunks,
            context=self._assemble_context(chunks),
            provenance=self._build_provenance(chunks),
        )

    def _filter(
        self,
        hits: list[LexicalHit],
        allowed_types: set[NodeType] | None,
        excluded: set[str],
    ) -> list[LexicalHit]:
        filtered = []
        for hit in hits:
            if hit.node_id in excluded:
                continue
            node = self.engine.store.get_node(hit.node_id)
            if node is None:
                continue
            if allowed_types is not None and node.type not in allowed_types:
                continue
            filtered.append(hit)
        return filtered

    @staticmethod
    def _extract_seeds(hits: list[LexicalHit]) -> list[Seed]:
        node_scores: dict[str, float] = {}
        for hit in hits:
            node_scores[hit.node_id] = max(node_scores.get(hit.node_id, 0.0), hit.score)
        ranked = sorted(node_scores.items(), key=lambda item: (-item[1], item[0]))
        return [Seed(node_id=node_id, score=score) for node_id, score in ranked[:MAX_SEEDS]]

    @staticmethod
    def _hit_to_chunk(hit: LexicalHit) -> NoteChunk:
        # Index built from an older vault scan
        node_id, _, position = hit.chunk_id.rpartition("#")
        return NoteChunk(
            node_id=node_id or hit.node_id,
            title=hit.title,
            section=hit.section,
            content=hit.content,
            position=int(position) if position.isdigit() else 0,
        )

    def _fuse(self, scored: dict[str, list[_Scored]], max_results: int) -> list[ContextChunk]:
        lookup: dict[str, _Scored] = {}
        result_lists: dict[str, list[RankedItem]] = {}
        for source, items in scored.items():
            if not items:
                continue
            result_lists[source] = [
                RankedItem(id=item.chunk.chunk_id, score=item.score, source=source) for item in items
            ]
            for item in items:
                existing = lookup.get(item.chunk.chunk_id)
                if existing is None or item.score > existing.score:
                    lookup[item.chunk.chunk_id] = item

        fused = reciprocal_rank_fusion(result_lists, k=self.rrf_k, weights=self.weights)

        chunks = []
        for item in fused[:max_results]:
            chunk = lookup[item.id].chunk
            match_type = "lexical" if "lexical" in item.sources else item.sources[0]
            chunks.append(
                ContextChunk(
                    chunk_id=item.id,
                    node_id=chunk.node_id,
                    title=chunk.title,
                    section=chunk.section,
                    content=chunk.content,
                    score=item.score,
                    match_type=match_type,
                    sources=item.sources,
                )
            )
        return chunks

    def _assemble_context(self, chunks: list[ContextChunk]) -> str:
        if not chunks:
            return ""

        by_node: dict[str, list[ContextChunk]] = {}
        for chunk in chunks:
            by_node.setdefault(chunk.node_id, []).append(chunk)

        sections = []
        for node_chunks in by_node.values():
            node_chunks.sort(key=lambda c: self._position(c.chunk_id))
            title = node_chunks[0].title
            body = "\n\n".join(c.content for c in node_chunks)
            sections.append(f"## {title}\n\n{body}")

        return "\n\n---\n\n".join(sections)

    def _position(self, chunk_id: str) -> int:
        chunk = self._chunks_by_id.get(chunk_id)
        return chunk.position if chunk is not None else 0

    def _build_provenance(self, chunks: list[ContextChunk]) -> list[Provenance]:
        scores: dict[str, float] = {}
        counts: dict[str, int] = {}
        sources: dict[str, list[str]] = {}
        titles: dict[str, str] = {}
        for chunk in chunks:
            scores[chunk.node_id] = scores.get(chunk.node_id, 0.0) + chunk.score
            counts[chunk.node_id] = counts.get(chunk.node_id, 0) + 1
            titles.setdefault(chunk.node_id, chunk.title)
            node_sources = sources.setdefault(chunk.node_id, [])
            for source in chunk.sources:
                if source not in node_sources:
                    node_sources.append(source)

        total = sum(scores.values())
        provenance = []
        for node_id, score in scores.items():
            node = self.engine.store.get_node(node_id)
            provenance.append(
                Provenance(
                    node_id=node_id,
                    title=node.title if node is not None else titles[node_id],
                    path=node.path if node is not None else node_id,
                    contribution=score / total if total > 0 else 0.0,
                    chunk_count=counts[node_id],
                    sources=sources[node_id],
                )
            )
        return sorted(provenance, key=lambda p: (-p.contribution, p.node_id))

"""Whoosh-based BM25 keyword search over note chunks."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from whoosh import index
from whoosh.fields import ID, KEYWORD, STORED, TEXT, Schema
from whoosh.qparser import MultifieldParser, OrGroup
from whoosh.qparser.common import QueryParserError
from whoosh.query import Term

from ..config import get_index_root
from ..models import LexicalHit, NoteChunk

log = logging.getLogger(__name__)


class LexicalIndex:
    """Keyword/BM25 search using Whoosh."""

    def __init__(self, index_dir: Path | None = None):
        """Initialize the Whoosh index.

        Args:
            index_dir: Directory for index storage. Defaults to INDEX_ROOT/whoosh/.
        """
        self._index_dir = index_dir or get_index_root() / "whoosh"
        self._index: index.Index | None = None
        self._schema = Schema(
            chunk_id=ID(stored=True, unique=True),
            node_id=ID(stored=True),
            section=STORED,
            title=TEXT(stored=True),
            content=TEXT(stored=True),
            tags=KEYWORD(stored=True, commas=True, lowercase=True),
        )

    def _ensure_index(self) -> index.Index:
        """Ensure index exists and return it."""
        if self._index is not None:
            return self._index

        self._index_dir.mkdir(parents=True, exist_ok=True)

        if index.exists_in(str(self._index_dir)):
            self._index = index.open_dir(str(self._index_dir))
        else:
            self._index = index.create_in(str(self._index_dir), self._schema)

        return self._index

    def index_chunks(self, chunks: list[NoteChunk], tags: dict[str, list[str]] | None = None) -> None:
        """Index chunks in a single transaction.

        Args:
            chunks: Chunks to add or replace (keyed by chunk id).
            tags: Optional node id -> tags mapping.
        """
        if not chunks:
            return

        tags = tags or {}
        ix = self._ensure_index()
        writer = ix.writer()
        for chunk in chunks:
            writer.update_document(
                chunk_id=chunk.chunk_id,
                node_id=chunk.node_id,
                section=chunk.section or "",
                title=chunk.title,
                content=chunk.content,
                tags=",".join(tags.get(chunk.node_id, [])),
            )
        writer.commit()

    def rebuild(self, chunks: list[NoteChunk], tags: dict[str, list[str]] | None = None) -> None:
        """Replace the whole index with the given chunks."""
        self.clear()
        self.index_chunks(chunks, tags)
        log.debug("Indexed %d chunks", len(chunks))

    def search(self, query: str, limit: int = 10) -> list[LexicalHit]:
        """Search the index.

        Args:
            query: Search query string.
            limit: Maximum number of results.

        Returns:
            Hits best first, scores normalized to 0-1.
        """
        ix = self._ensure_index()

        with ix.searcher() as searcher:
            parser = MultifieldParser(
                ["title", "content", "tags"],
                schema=self._schema,
                group=OrGroup,
            )

            try:
                parsed_query = parser.parse(query)
            except QueryParserError:
                parsed_query = Term("content", query.lower())

            results = searcher.search(parsed_query, limit=limit)
            if not results:
                return []

            max_score = max(r.score for r in results)
            max_score = max_score if max_score > 0 else 1.0

            return [
                LexicalHit(
                    chunk_id=hit["chunk_id"],
                    node_id=hit["node_id"],
                    title=hit.get("title", ""),
                    section=hit.get("section") or None,
                    content=hit.get("content", ""),
                    score=hit.score / max_score,
                )
                for hit in results
            ]

    def clear(self) -> None:
        """Clear all documents from the index."""
        if self._index is not None:
            self._index.close()
            self._index = None

        if self._index_dir.exists():
            shutil.rmtree(self._index_dir)

        self._index_dir.mkdir(parents=True, exist_ok=True)
        self._index = index.create_in(str(self._index_dir), self._schema)

    def doc_count(self) -> int:
        """Return the number of chunks in the index."""
        return self._ensure_index().doc_count()

    def delete_note(self, node_id: str) -> None:
        """Delete every chunk of a note."""
        ix = self._ensure_index()
        writer = ix.writer()
        writer.delete_by_term("node_id", node_id)
        writer.commit()

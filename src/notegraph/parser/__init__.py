"""Markdown parsing with frontmatter and link extraction."""

from ..models import NoteChunk, NoteMetadata
from .links import extract_links, normalize_link
from .markdown import ParseError, chunk_by_h2, parse_note
from .title_index import build_title_index, resolve_link_target

__all__ = [
    "parse_note",
    "ParseError",
    "NoteMetadata",
    "NoteChunk",
    "chunk_by_h2",
    "extract_links",
    "normalize_link",
    "build_title_index",
    "resolve_link_target",
]

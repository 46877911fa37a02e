"""Markdown parsing with optional YAML frontmatter."""

import re
from pathlib import Path

import frontmatter
import yaml
from pydantic import ValidationError

from ..models import NoteChunk, NoteMetadata

H1_PATTERN = re.compile(r"^# (.+)$", re.MULTILINE)
H2_PATTERN = re.compile(r"^## (.+)$", re.MULTILINE)


class ParseError(Exception):
    """Raised when markdown parsing fails."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


def parse_note(path: Path, node_id: str | None = None) -> tuple[NoteMetadata, str, list[NoteChunk]]:
    """Parse a markdown note.

    Frontmatter is optional. Without a `title` field the first H1 is used,
    then the file stem.

    Args:
        path: Path to the markdown file.
        node_id: Id attached to the chunks. Defaults to the file name.

    Returns:
        Tuple of (metadata, body, chunks). metadata.title is always set.

    Raises:
        ParseError: If the file cannot be read or has invalid frontmatter.
    """
    if not path.is_file():
        raise ParseError(path, "File does not exist")

    try:
        post = frontmatter.load(str(path))
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError(path, f"Failed to read file: {e}") from e
    except yaml.YAMLError as e:
        raise ParseError(path, f"Failed to parse frontmatter: {e}") from e

    try:
        metadata = NoteMetadata.model_validate(post.metadata)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"  - {loc}: {error['msg']}")
        raise ParseError(path, "Invalid frontmatter:\n" + "\n".join(errors)) from e

    content = post.content
    if not metadata.title:
        h1 = H1_PATTERN.search(content)
        metadata.title = h1.group(1).strip() if h1 else path.stem

    chunks = chunk_by_h2(node_id or path.name, metadata.title, content)
    return metadata, content, chunks


def chunk_by_h2(node_id: str, title: str, content: str) -> list[NoteChunk]:
    """Split content into chunks by H2 headers.

    Text before the first H2 becomes a chunk without a section. Empty
    sections are skipped.
    """
    chunks: list[NoteChunk] = []
    matches = list(H2_PATTERN.finditer(content))

    if not matches:
        body = content.strip()
        if body:
            chunks.append(NoteChunk(node_id=node_id, title=title, content=body, position=0))
        return chunks

    intro = content[: matches[0].start()].strip()
    if intro:
        chunks.append(NoteChunk(node_id=node_id, title=title, content=intro, position=0))

    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(content)
        section_content = content[match.end() : end].strip()
        if section_content:
            chunks.append(
                NoteChunk(
                    node_id=node_id,
                    title=title,
                    section=match.group(1).strip(),
                    content=section_content,
                    position=len(chunks),
                )
            )

    return chunks

"""Title-to-node index for resolving wiki-style links.

Enables resolution of [[Title]] and [[Alias]] style links in addition
to path-style [[path/to/note]] links.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..models import NoteMetadata
from .links import normalize_link

log = logging.getLogger(__name__)


def build_title_index(notes: Iterable[tuple[str, NoteMetadata]]) -> dict[str, str]:
    """Build an index mapping titles and aliases to node ids.

    Keys are lowercased. The first note to claim a title or alias wins.

    Args:
        notes: (node_id, metadata) pairs.

    Returns:
        Dict mapping lowercase title/alias to node id.
    """
    title_index: dict[str, str] = {}

    for node_id, metadata in notes:
        names = [metadata.title] if metadata.title else []
        names.extend(metadata.aliases)
        for name in names:
            key = name.lower().strip()
            if not key:
                continue
            if key in title_index and title_index[key] != node_id:
                log.debug("Title %r already claimed by %s, ignoring %s", key, title_index[key], node_id)
                continue
            title_index[key] = node_id

    return title_index


def resolve_link_target(
    target: str,
    title_index: dict[str, str],
    node_ids: Iterable[str] = (),
) -> str | None:
    """Resolve a link target to a node id.

    Attempts resolution in order:
    1. Exact path match against known node ids
    2. Title/alias lookup (case-insensitive)
    3. Filename match (for [[filename]] without path)

    Args:
        target: The link target from [[target]].
        title_index: Title/alias to node id mapping.
        node_ids: Known node ids (vault-relative paths ending in .md).

    Returns:
        Resolved node id or None if not resolvable.
    """
    normalized = normalize_link(target)
    if not normalized:
        return None

    known = node_ids if isinstance(node_ids, (set, frozenset)) else set(node_ids)
    as_path = f"{normalized}.md"
    if as_path in known:
        return as_path

    lookup_key = normalized.lower()
    if lookup_key in title_index:
        return title_index[lookup_key]

    # [[note-name]] matching "folder/note-name.md", case-insensitive
    suffix = f"/{lookup_key}.md"
    for node_id in sorted(known):
        candidate = node_id.lower()
        if candidate.endswith(suffix) or candidate == f"{lookup_key}.md":
            return node_id

    return None

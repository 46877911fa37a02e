"""Wikilink extraction."""

import re

# Pattern for [[link]] syntax - captures content between double brackets
# Handles [[target]], [[target|display]] and [[target#heading]]
LINK_PATTERN = re.compile(r"\[\[([^\]]+)\]\]")


def extract_links(content: str) -> list[str]:
    """Extract wikilink targets from markdown content.

    Args:
        content: Markdown content to extract links from.

    Returns:
        Unique link targets in order of first appearance, normalized.
    """
    seen: set[str] = set()
    links: list[str] = []

    for link in LINK_PATTERN.findall(content):
        normalized = normalize_link(link)
        if normalized and normalized not in seen:
            seen.add(normalized)
            links.append(normalized)

    return links


def normalize_link(link: str) -> str:
    """Normalize a link target.

    - Drops `|display` text and `#heading` anchors
    - Removes .md extension
    - Normalizes path separators and strips surrounding slashes
    """
    link = link.split("|", 1)[0]
    link = link.split("#", 1)[0]
    link = link.strip()

    if link.endswith(".md"):
        link = link[:-3]

    link = link.replace("\\", "/")
    return link.strip("/")

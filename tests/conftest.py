"""Shared test fixtures for the notegraph test suite.

Design:
- tmp_vault: isolated note vault + index directory in a temp dir
- runner: CliRunner with proper isolation
- edge / create_note / build_sample_vault: small builders for graph and vault fixtures
"""

from pathlib import Path
from typing import Generator

import pytest
from click.testing import CliRunner

from notegraph.models import Edge, EdgeType


# ─────────────────────────────────────────────────────────────────────────────
# Core Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def runner() -> CliRunner:
    """CLI runner with isolated environment."""
    return CliRunner()


@pytest.fixture
def tmp_vault(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Create an isolated vault directory.

    Sets NOTEGRAPH_VAULT_ROOT and NOTEGRAPH_INDEX_ROOT to temp directories
    so no test touches a real vault or cache.

    Usage:
        def test_something(tmp_vault):
            (tmp_vault / "a.md").write_text("# A")
    """
    vault = tmp_path / "vault"
    vault.mkdir()
    index_root = tmp_path / "index"

    monkeypatch.setenv("NOTEGRAPH_VAULT_ROOT", str(vault))
    monkeypatch.setenv("NOTEGRAPH_INDEX_ROOT", str(index_root))
    monkeypatch.delenv("NOTEGRAPH_QUIET", raising=False)

    yield vault


# ─────────────────────────────────────────────────────────────────────────────
# Builders
# ─────────────────────────────────────────────────────────────────────────────


def create_note(
    vault: Path,
    path: str,
    title: str | None = None,
    content: str = "",
    **frontmatter: object,
) -> Path:
    """Write a markdown note with optional YAML frontmatter."""
    note_path = vault / path
    note_path.parent.mkdir(parents=True, exist_ok=True)

    lines = []
    if title is not None:
        lines.append(f"title: {title}")
    for key, value in frontmatter.items():
        if isinstance(value, list) and value and isinstance(value[0], dict):
            lines.append(f"{key}:")
            for item in value:
                first = True
                for item_key, item_value in item.items():
                    prefix = "  - " if first else "    "
                    lines.append(f"{prefix}{item_key}: {item_value}")
                    first = False
        elif isinstance(value, list):
            lines.append(f"{key}: [{', '.join(str(v) for v in value)}]")
        else:
            lines.append(f"{key}: {value}")

    text = f"---\n{chr(10).join(lines)}\n---\n\n{content}\n" if lines else f"{content}\n"
    note_path.write_text(text, encoding="utf-8")
    return note_path


def edge(source: str, target: str, edge_type: EdgeType | str = EdgeType.EXPLICIT_LINK, strength: float = 1.0) -> Edge:
    return Edge(source_id=source, target_id=target, edge_type=EdgeType(edge_type), strength=strength)



def build_sample_vault(vault: Path) -> Path:
    """Six notes, six edges, one orphan.

    Edges:
        people/ada.md      -explicit_link-> people/babbage.md
        people/ada.md      -explicit_link-> machines/engine.md
        people/babbage.md  -explicit_link-> machines/engine.md
        machines/engine.md -hierarchy->     machines/index.md
        history/timeline.md -sequence->     people/ada.md
        history/timeline.md -causes->       people/babbage.md
    """
    create_note(
        vault,
        "people/ada.md",
        title="Ada Lovelace",
        type="character",
        tags=["math"],
        aliases=["Ada"],
        content=(
            "# Ada\n\nWorked with [[Charles Babbage]] on the [[engine]].\n\n"
            "## Notes\n\nPoetical science. See [[Ada Lovelace]] and [[missing note]]."
        ),
    )
    create_note(
        vault,
        "people/babbage.md",
        title="Charles Babbage",
        type="character",
        content="Designed the [[Analytical Engine]].\n\n## Difference engine\n\nAn earlier design.",
    )
    create_note(
        vault,
        "machines/engine.md",
        title="Analytical Engine",
        type="concept",
        parent="machines/index",
        content="General purpose mechanical computer. Programs on punched cards.",
    )
    create_note(vault, "machines/index.md", title="Machines", type="moc", content="Index of machines.")
    create_note(
        vault,
        "history/timeline.md",
        title="Timeline",
        next="people/ada",
        relations=[{"path": "Charles Babbage", "type": "causes"}],
        content="1843 notes published.",
    )
    create_note(vault, "misc/orphan.md", title="Orphan", content="Nothing links here.")
    return vault


@pytest.fixture
def sample_vault(tmp_vault: Path) -> Path:
    """tmp_vault populated with build_sample_vault."""
    return build_sample_vault(tmp_vault)


@pytest.fixture
def sample_engine(sample_vault: Path):
    """GraphEngine over the sample vault."""
    from notegraph.engine import GraphEngine
    from notegraph.store import GraphStore

    return GraphEngine(GraphStore.from_vault(sample_vault))

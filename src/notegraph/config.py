"""Configuration management for notegraph.

This module contains all configurable constants for graph traversal, path
search and retrieval. Magic numbers are documented here rather than scattered
throughout the codebase.
"""

import os
from pathlib import Path

from .models import EdgePenalties, EdgeType


class ConfigurationError(Exception):
    """Raised when required configuration is missing."""

    pass


CONFIG_FILENAME = ".ngconfig"


def _discover_project_config(start_dir: Path | None = None, max_depth: int = 10) -> tuple[Path, dict] | None:
    """Walk up from start_dir looking for a .ngconfig with vault_path.

    Args:
        start_dir: Directory to start from (defaults to cwd)
        max_depth: Maximum directories to traverse up

    Returns:
        Tuple of (directory containing the config, parsed config) if found.
    """
    import yaml

    current = Path(start_dir or os.getcwd()).resolve()

    for _ in range(max_depth):
        config_file = current / CONFIG_FILENAME
        if config_file.exists():
            try:
                data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
            except (OSError, yaml.YAMLError):
                data = {}
            if isinstance(data, dict) and "vault_path" in data:
                return current, data

        parent = current.parent
        if parent == current:  # Reached filesystem root
            break
        current = parent

    return None


def get_vault_root() -> Path:
    """Get the note vault root directory.

    Discovery order:
    1. NOTEGRAPH_VAULT_ROOT environment variable (explicit override)
    2. Walk up from cwd looking for .ngconfig with a vault_path field
    3. Error with helpful message

    Raises:
        ConfigurationError: If no vault can be found.
    """
    root = os.environ.get("NOTEGRAPH_VAULT_ROOT")
    if root:
        return Path(root)

    discovered = _discover_project_config()
    if discovered:
        config_dir, data = discovered
        vault = (config_dir / str(data["vault_path"])).resolve()
        if vault.is_dir():
            return vault

    raise ConfigurationError(
        "No note vault found. Options:\n"
        "  1. Set NOTEGRAPH_VAULT_ROOT to your notes directory\n"
        f"  2. Add a {CONFIG_FILENAME} file with 'vault_path: <dir>' at your project root"
    )


def get_exclude_patterns() -> list[str]:
    """Return glob patterns (relative to the vault) excluded from note discovery."""
    patterns = list(DEFAULT_EXCLUDE_PATTERNS)
    discovered = _discover_project_config()
    if discovered:
        _, data = discovered
        extra = data.get("exclude") or []
        if isinstance(extra, list):
            patterns.extend(str(p) for p in extra)
    return patterns


def get_index_root() -> Path:
    """Get the directory holding the graph cache and lexical index.

    Discovery order:
    1. NOTEGRAPH_INDEX_ROOT environment variable (explicit override)
    2. {vault_root}/.notegraph/

    Raises:
        ConfigurationError: If no index root can be determined.
    """
    root = os.environ.get("NOTEGRAPH_INDEX_ROOT")
    if root:
        return Path(root)

    try:
        return get_vault_root() / ".notegraph"
    except ConfigurationError:
        raise ConfigurationError(
            "NOTEGRAPH_INDEX_ROOT environment variable is not set and no vault found. "
            "Set it to the path where the graph cache should be stored."
        )


# =============================================================================
# Note Discovery
# =============================================================================

# Directories that never contain notes
DEFAULT_EXCLUDE_PATTERNS = (".git/**", ".notegraph/**", "node_modules/**")


# =============================================================================
# Bounded Graph Expansion
# =============================================================================

# Hops from the seeds. A node three hops out keeps 0.7^3 ≈ 0.34 of its
# seed score at the default decay factor.
DEFAULT_MAX_DEPTH = 3

# Maximum accumulated nodes per expansion, seeds included
DEFAULT_BUDGET = 50

# Per-hop multiplicative discount; a node at depth d carries seed * decay^d
DEFAULT_DECAY_FACTOR = 0.7

# Propagated scores below this are pruned
DEFAULT_SCORE_THRESHOLD = 0.01

# Edge types followed by expansion unless the caller says otherwise
DEFAULT_EXPANSION_EDGE_TYPES = (
    EdgeType.EXPLICIT_LINK,
    EdgeType.SEQUENCE,
    EdgeType.HIERARCHY,
)

# "Are these two nodes connected" uses a wide budget and tests membership
CONNECTIVITY_BUDGET = 1000

# Node cap for subgraph extraction around a center node
SUBGRAPH_BUDGET = 100

# Transitive impact analysis
IMPACT_MAX_DEPTH = 3
IMPACT_BUDGET = 100

# Minimum incoming links for a node to count as a hub
DEFAULT_HUB_THRESHOLD = 5


# =============================================================================
# Path Finding (Yen's K-shortest diverse paths)
# =============================================================================

DEFAULT_PATH_COUNT = 3

# Per-side ceiling; bidirectional search stops at 2 * max_depth combined hops
DEFAULT_PATH_MAX_DEPTH = 15

# Maximum Jaccard node overlap allowed between two accepted paths
DEFAULT_OVERLAP_THRESHOLD = 0.7

# Candidate pool cap; evicted by (hops, score, path string)
DEFAULT_MAX_CANDIDATES = 100

# Accepted paths may be at most this many hops longer than the shortest
DEFAULT_MAX_EXTRA_HOPS = 2

DEFAULT_PATH_EDGE_TYPES = (
    EdgeType.EXPLICIT_LINK,
    EdgeType.SEQUENCE,
    EdgeType.CAUSES,
    EdgeType.SEMANTIC,
)

# Cosmetic path score = hops + sum(penalty per edge). Lower reads more naturally.
DEFAULT_EDGE_PENALTIES = EdgePenalties(
    penalties={
        EdgeType.EXPLICIT_LINK: 0.0,
        EdgeType.SEQUENCE: 0.1,
        EdgeType.CAUSES: 0.2,
        EdgeType.SEMANTIC: 0.3,
        EdgeType.SEMANTIC_SUGGESTION: 0.5,
    },
    default=0.3,
)


# =============================================================================
# Retrieval (Reciprocal Rank Fusion)
# =============================================================================

# RRF constant. Formula: score(d) = sum(weight / (k + rank)) across lists.
# k=60 is the standard value from the RRF paper (Cormack et al., 2009).
RRF_K = 60

DEFAULT_MAX_RESULTS = 20

# Per-source fusion weights
LEXICAL_WEIGHT = 0.3
GRAPH_WEIGHT = 0.2
SEMANTIC_WEIGHT = 0.5

# Lexical hits are folded into at most this many expansion seeds
MAX_SEEDS = 10

EXPANSION_MAX_DEPTH = 3
EXPANSION_BUDGET = 50

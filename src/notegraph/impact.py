"""Change impact analysis: which notes a change to one note may affect."""

from __future__ import annotations

import logging

from .config import IMPACT_BUDGET, IMPACT_MAX_DEPTH
from .engine import GraphEngine
from .models import ImpactReport

log = logging.getLogger(__name__)


def analyze_impact(
    engine: GraphEngine,
    node_id: str,
    max_depth: int = IMPACT_MAX_DEPTH,
    budget: int = IMPACT_BUDGET,
) -> ImpactReport:
    """Direct neighbors (either direction) and notes reached beyond them.

    Raises:
        NotegraphError: If node_id is not in the graph.
    """
    engine.require_node(node_id)

    direct: set[str] = set()
    for edge in engine.store.find_outgoing(node_id):
        direct.add(edge.target_id)
    for edge in engine.store.find_incoming(node_id):
        direct.add(edge.source_id)
    direct.discard(node_id)

    expanded = engine.expand_graph(
        [node_id],
        max_depth=max_depth,
        budget=budget,
        include_incoming=True,
    )
    excluded = direct | {node_id}
    transitive = [item.node_id for item in expanded if item.depth > 1 and item.node_id not in excluded]

    log.debug("Impact of %s: %d direct, %d transitive", node_id, len(direct), len(transitive))
    return ImpactReport(node_id=node_id, direct=sorted(direct), transitive=transitive)

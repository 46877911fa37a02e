"""Retrieval: BM25 lexical index, rank fusion and context assembly."""

from .context import ContextAssembler, SemanticSearcher
from .fusion import boost_overlap, interleave, reciprocal_rank_fusion, weighted_score_fusion
from .lexical import LexicalIndex

__all__ = [
    "ContextAssembler",
    "LexicalIndex",
    "SemanticSearcher",
    "boost_overlap",
    "interleave",
    "reciprocal_rank_fusion",
    "weighted_score_fusion",
]

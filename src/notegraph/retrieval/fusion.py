"""Merge independently ranked result lists into one ordering."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from ..config import RRF_K
from ..errors import NotegraphError
from ..models import FusedItem, RankedItem


class _Accumulator:
    __slots__ = ("score", "weight", "sources", "ranks")

    def __init__(self) -> None:
        self.score = 0.0
        self.weight = 0.0
        self.sources: list[str] = []
        self.ranks: dict[str, int] = {}

    def add(self, source: str, rank: int, score: float) -> None:
        self.score += score
        if source not in self.ranks:
            self.sources.append(source)
            self.ranks[source] = rank

    def to_item(self, item_id: str, score: float) -> FusedItem:
        return FusedItem(id=item_id, score=score, sources=self.sources, ranks=self.ranks)


def _fused_sort_key(item: FusedItem) -> tuple[float, int, str]:
    return (-item.score, -len(item.sources), item.id)


def reciprocal_rank_fusion(
    result_lists: Mapping[str, Sequence[RankedItem]],
    k: float = RRF_K,
    weights: Mapping[str, float] | None = None,
) -> list[FusedItem]:
    """Weighted Reciprocal Rank Fusion.

    Each item at 0-based rank r in a source list contributes
    ``weight[source] / (k + r + 1)``. Contributions add up across sources
    (and across repeats within one source). Sources missing from weights
    count with weight 1.0.

    Ties on score go to the item seen by more sources, then to the smaller id.

    Raises:
        NotegraphError: If k is negative.
    """
    if k < 0:
        raise NotegraphError.invalid_argument("k", k, "must be >= 0")
    weights = weights or {}

    scores: dict[str, _Accumulator] = {}
    for source, items in result_lists.items():
        weight = weights.get(source, 1.0)
        for rank, item in enumerate(items):
            acc = scores.setdefault(item.id, _Accumulator())
            acc.add(source, rank + 1, weight / (k + rank + 1))

    fused = [acc.to_item(item_id, acc.score) for item_id, acc in scores.items()]
    fused.sort(key=_fused_sort_key)
    return fused


def weighted_score_fusion(
    result_lists: Mapping[str, Sequence[RankedItem]],
    weights: Mapping[str, float],
) -> list[FusedItem]:
    """Weighted average of the sources' own scores.

    Unlike RRF this trusts the raw scores, so they should share a scale.
    """
    scores: dict[str, _Accumulator] = {}
    for source, items in result_lists.items():
        weight = weights.get(source, 1.0)
        for rank, item in enumerate(items):
            acc = scores.setdefault(item.id, _Accumulator())
            acc.add(source, rank + 1, item.score * weight)
            acc.weight += weight

    fused = [
        acc.to_item(item_id, acc.score / acc.weight if acc.weight > 0 else 0.0)
        for item_id, acc in scores.items()
    ]
    fused.sort(key=_fused_sort_key)
    return fused


def interleave(
    result_lists: Mapping[str, Sequence[RankedItem]],
    max_results: int,
) -> list[FusedItem]:
    """Round-robin over the sources, skipping ids already taken."""
    if max_results < 1:
        return []

    seen: set[str] = set()
    results: list[FusedItem] = []
    positions = {source: 0 for source in result_lists}

    while len(results) < max_results:
        added = False
        for source, items in result_lists.items():
            position = positions[source]
            while position < len(items):
                item = items[position]
                position += 1
                if item.id in seen:
                    continue
                seen.add(item.id)
                results.append(
                    FusedItem(id=item.id, score=item.score, sources=[source], ranks={source: position})
                )
                added = True
                break
            positions[source] = position

            if len(results) >= max_results:
                break

        if not added:
            break

    return results


def boost_overlap(results: Sequence[FusedItem], boost_factor: float = 1.2) -> list[FusedItem]:
    """Multiply each score by boost_factor for every source beyond the first."""
    boosted = [
        item.model_copy(update={"score": item.score * boost_factor ** (len(item.sources) - 1)})
        for item in results
    ]
    boosted.sort(key=_fused_sort_key)
    return boosted

"""Budget filtering, ordering, fallback expansion and truncation of scored results."""

from __future__ import annotations

import math
from typing import Callable, Iterable, Optional

import structlog

from story_market.config import RESULT_FLOOR
from story_market.domain.search import ScoredCandidate, SortMode

logger = structlog.get_logger(__name__)

FallbackFn = Callable[[list[ScoredCandidate]], list[ScoredCandidate]]


def within_budget(
    results: Iterable[ScoredCandidate], budget_min: Optional[float], budget_max: Optional[float]
) -> list[ScoredCandidate]:
    low = budget_min if budget_min is not None else 0.0
    high = budget_max if budget_max is not None else math.inf
    return [r for r in results if low <= r.calculated_total <= high]


def sort_results(results: list[ScoredCandidate], sort_by: SortMode) -> list[ScoredCandidate]:
    """
    Order results; sorted() is stable so ties keep their stage order.

    reverse=True also preserves the original order of equal elements.
    """
    if sort_by is SortMode.PRICE_LOW_TO_HIGH:
        return sorted(results, key=lambda r: r.calculated_total)
    if sort_by is SortMode.PRICE_HIGH_TO_LOW:
        return sorted(results, key=lambda r: r.calculated_total, reverse=True)
    return sorted(results, key=lambda r: r.final_score, reverse=True)


class ResultAssembler:
    """
    Args:
        fallback: Called with the current results when fewer than the floor
            remain; returns extra scored candidates (empty when no state hint)
        floor: Result count below which the fallback runs
    """

    def __init__(self, fallback: Optional[FallbackFn] = None, floor: int = RESULT_FLOOR):
        self.fallback = fallback
        self.floor = floor

    def assemble(
        self,
        scored: Iterable[ScoredCandidate],
        budget_min: Optional[float],
        budget_max: Optional[float],
        sort_by: SortMode,
        limit: int,
    ) -> list[ScoredCandidate]:
        eligible = [r for r in scored if r.eligible]
        results = sort_results(within_budget(eligible, budget_min, budget_max), sort_by)

        if len(results) < self.floor and self.fallback is not None:
            extra = within_budget(
                (r for r in self.fallback(results) if r.eligible), budget_min, budget_max
            )
            if extra:
                logger.debug("search_fallback_merged", added=len(extra), before=len(results))
                results = sort_results(results + extra, sort_by)

        return results[:limit]

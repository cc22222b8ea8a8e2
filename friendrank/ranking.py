from __future__ import annotations

from typing import Iterable, List, Optional

from .models import ScoredItem

DEFAULT_TOP_K = 15


def filter_by_count(items: Iterable[ScoredItem], min_observations: int) -> List[ScoredItem]:
    return [item for item in items if item.observation_count >= min_observations]


def rank(items: Iterable[ScoredItem], min_observations: int = 1) -> List[ScoredItem]:
    """Items with enough ratings, best first.

    Order: score descending, then number of ratings descending, then item
    key ascending. The input is left untouched, so the same collection can
    be re-ranked under any threshold.
    """
    return sorted(
        filter_by_count(items, min_observations),
        key=lambda item: (-item.score, -item.observation_count, item.item_key),
    )


def top(ranked: List[ScoredItem], k: int = DEFAULT_TOP_K) -> List[ScoredItem]:
    return ranked[: max(k, 0)]


def parse_threshold(text: str, max_threshold: int) -> Optional[int]:
    """A whole number in 1..max_threshold, or None."""
    try:
        value = int(text.strip())
    except (AttributeError, ValueError):
        return None
    if 1 <= value <= max_threshold:
        return value
    return None

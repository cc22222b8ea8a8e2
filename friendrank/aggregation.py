from __future__ import annotations

from itertools import groupby
from operator import attrgetter
from typing import Iterable, List, Optional

from .models import ItemGroup, Observation, ScoredItem
from .strategies import MeanStrategy, ScoringStrategy


def merge(observations: Iterable[Observation]) -> List[ItemGroup]:
    """Group observations by item key.

    Observations are stably sorted by key and each contiguous run becomes
    one group, so groups come out in key order and keep the arrival order of
    their ratings.
    """
    ordered = sorted(observations, key=attrgetter("item_key"))
    return [
        ItemGroup(item_key=key, ratings=tuple(obs.rating for obs in run))
        for key, run in groupby(ordered, key=attrgetter("item_key"))
    ]


def score_groups(groups: Iterable[ItemGroup], strategy: Optional[ScoringStrategy] = None) -> List[ScoredItem]:
    strategy = strategy or MeanStrategy()
    return [
        ScoredItem(
            item_key=group.item_key,
            score=strategy.score(group.ratings),
            observation_count=len(group.ratings),
            ratings=group.ratings,
        )
        for group in groups
    ]


def aggregate(observations: Iterable[Observation], strategy: Optional[ScoringStrategy] = None) -> List[ScoredItem]:
    return score_groups(merge(observations), strategy)

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Dict, Sequence, Tuple, Type

# Raw rating (0..9) -> weight. Steeply convex: the top few ratings carry
# almost all of the score.
DEFAULT_WEIGHT_TABLE: Tuple[int, ...] = (100, 95, 80, 65, 40, 20, 5, 0, 0, 0)


class ScoringStrategy(ABC):
    """Turns the ratings of one item into a single comparable score."""

    name: str = ""

    @abstractmethod
    def score(self, ratings: Sequence[int]) -> float:
        """Return the aggregate score; empty input scores 0.0."""
        raise NotImplementedError


class MeanStrategy(ScoringStrategy):
    """Arithmetic mean of the ratings."""

    name = "mean"

    def score(self, ratings: Sequence[int]) -> float:
        if not ratings:
            return 0.0
        return sum(ratings) / len(ratings)


class QuadraticMeanStrategy(ScoringStrategy):
    """Root mean square of the ratings."""

    name = "least-square"

    def score(self, ratings: Sequence[int]) -> float:
        if not ratings:
            return 0.0
        return math.sqrt(sum(r * r for r in ratings) / len(ratings))


class WeightedTableStrategy(ScoringStrategy):
    """Mean of the ratings after mapping each through a weight table.

    Ratings with no entry in the table are discarded, not counted as zero,
    so [2, 15] scores the same as [2].
    """

    name = "weighted"

    def __init__(self, table: Sequence[int] = DEFAULT_WEIGHT_TABLE) -> None:
        self._table = tuple(table)

    @property
    def table(self) -> Tuple[int, ...]:
        return self._table

    def score(self, ratings: Sequence[int]) -> float:
        mapped = [self._table[r] for r in ratings if 0 <= r < len(self._table)]
        return MeanStrategy().score(mapped)


STRATEGIES: Dict[str, Type[ScoringStrategy]] = {
    MeanStrategy.name: MeanStrategy,
    QuadraticMeanStrategy.name: QuadraticMeanStrategy,
    WeightedTableStrategy.name: WeightedTableStrategy,
}


def get_strategy(name: str) -> ScoringStrategy:
    try:
        return STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"Unknown scoring strategy: {name}") from None

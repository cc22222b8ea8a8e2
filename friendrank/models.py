from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from .errors import FailureKind

# Closed rating scale. Values outside it never become an Observation.
RATING_SCALE = range(0, 10)


@dataclass(frozen=True)
class Observation:
    item_key: str
    rating: int


@dataclass(frozen=True)
class ItemGroup:
    item_key: str
    ratings: Tuple[int, ...]


@dataclass(frozen=True)
class ScoredItem:
    item_key: str
    score: float
    observation_count: int
    ratings: Tuple[int, ...]

    @property
    def display_name(self) -> str:
        return self.item_key.replace("/film/", "").replace("/", "")


@dataclass(frozen=True)
class PageResult:
    url: str
    success: bool
    status_code: Optional[int]
    attempts: int
    latency_ms: int
    document: Optional[Any] = field(default=None, compare=False)
    failure: Optional[FailureKind] = None


@dataclass(frozen=True)
class SourceReport:
    identity: str
    observation_count: int
    excluded_count: int
    error_type: Optional[str] = None


@dataclass(frozen=True)
class FetchSnapshot:
    total_requests: int
    success_count: int
    failure_count: int
    retry_count: int
    avg_latency_ms: float
    timestamp: float

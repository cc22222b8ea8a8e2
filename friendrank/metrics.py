from __future__ import annotations

import time
from collections import deque
from threading import Lock
from typing import Deque, Dict, List

from .models import FetchSnapshot, PageResult


class FetchMetrics:
    """Thread-safe collector for page fetch outcomes.

    Every FetchClient call records its PageResult here; a FetchSnapshot
    summarizes the run once collection is over."""

    def __init__(self, maxlen: int = 100000) -> None:
        self._lock = Lock()
        self._events: Deque[tuple[float, PageResult]] = deque(maxlen=maxlen)

    def record_result(self, result: PageResult) -> None:
        """Record a fetch result with the current timestamp."""
        with self._lock:
            self._events.append((time.time(), result))

    def snapshot(self) -> FetchSnapshot:
        """Return aggregated counts over all recorded fetches."""
        with self._lock:
            events: List[PageResult] = [e for _, e in self._events]
        total = len(events)
        success_count = sum(1 for e in events if e.success)
        retry_count = sum(max(e.attempts - 1, 0) for e in events)
        avg_latency_ms = (sum(e.latency_ms for e in events) / total) if total else 0.0

        return FetchSnapshot(
            total_requests=total,
            success_count=success_count,
            failure_count=total - success_count,
            retry_count=retry_count,
            avg_latency_ms=avg_latency_ms,
            timestamp=time.time(),
        )

    def export_json(self) -> List[Dict]:
        """Export recorded fetches as dictionaries, without parsed documents."""
        with self._lock:
            events = list(self._events)
        return [
            {
                "timestamp": ts,
                "url": e.url,
                "success": e.success,
                "status_code": e.status_code,
                "attempts": e.attempts,
                "latency_ms": e.latency_ms,
                "failure": e.failure.value if e.failure else None,
            }
            for ts, e in events
        ]

from __future__ import annotations

from typing import Optional


class FixedBackoff:
    """Constant delay between fetch attempts.

    The remote platform throttles bursts rather than long retries, so every
    attempt waits the same amount regardless of the attempt number or the
    error that caused it."""

    def __init__(self, delay_seconds: float = 1.0) -> None:
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        self._delay = delay_seconds

    def get_sleep(self, attempt: int, error_type: Optional[str] = None) -> float:
        """Return the sleep duration in seconds before the next attempt."""
        return self._delay

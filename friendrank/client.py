from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional

from bs4 import BeautifulSoup

from .backoff import FixedBackoff
from .errors import FailureKind
from .metrics import FetchMetrics
from .models import PageResult

logger = logging.getLogger(__name__)


class FetchClient:
    """Fetches one page with bounded retries and returns it parsed.

    - Any 2xx status is a success; everything else, including transport
      exceptions, consumes one attempt.
    - Exhausting the attempts yields a failed PageResult, never an exception,
      so a single dead page only ends the crawl that asked for it.
    - Sessions are per thread; nothing is cached between calls.
    """

    def __init__(
        self,
        session_factory: Callable[[], Any],
        backoff: Optional[FixedBackoff] = None,
        timeout: float = 10.0,
        max_attempts: int = 10,
        metrics: Optional[FetchMetrics] = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._session_factory = session_factory
        self._backoff = backoff or FixedBackoff()
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._metrics = metrics
        self._local = threading.local()

    def fetch(self, url: str) -> PageResult:
        start_ms = self._now_ms()
        status_code = None
        attempt = 0
        while True:
            attempt += 1
            try:
                logger.debug("GET %s (attempt %d)", url, attempt)
                response = self._session().get(url, timeout=self._timeout)
                status_code = getattr(response, "status_code", None)
                if status_code is not None and 200 <= int(status_code) < 300:
                    return self._record(
                        PageResult(
                            url=url,
                            success=True,
                            status_code=status_code,
                            attempts=attempt,
                            latency_ms=self._now_ms() - start_ms,
                            document=self.parse(response),
                        )
                    )
                error_type = f"HTTP_{status_code}"
            except Exception as exc:  # noqa: BLE001
                error_type = type(exc).__name__

            if attempt >= self._max_attempts:
                logger.warning("Giving up on %s after %d attempts (%s)", url, attempt, error_type)
                return self._record(
                    PageResult(
                        url=url,
                        success=False,
                        status_code=status_code,
                        attempts=attempt,
                        latency_ms=self._now_ms() - start_ms,
                        failure=FailureKind.UNREACHABLE,
                    )
                )

            sleep_s = self._backoff.get_sleep(attempt, error_type)
            logger.debug("Connection problem on %s (%s), retrying in %.1fs", url, error_type, sleep_s)
            if sleep_s > 0:
                time.sleep(sleep_s)

    def parse(self, response: Any) -> BeautifulSoup:
        return BeautifulSoup(getattr(response, "text", "") or "", "html.parser")

    def _session(self) -> Any:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._session_factory()
            self._local.session = session
        return session

    def _record(self, result: PageResult) -> PageResult:
        if self._metrics:
            self._metrics.record_result(result)
        return result

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

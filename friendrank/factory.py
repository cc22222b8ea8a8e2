from __future__ import annotations

from typing import Any, Callable, Optional

import requests
from curl_cffi import requests as curl_requests

from .backoff import FixedBackoff
from .client import FetchClient
from .config import CrawlConfig
from .metrics import FetchMetrics

TRANSPORTS = ("requests", "curl")


class ClientFactory:
    """Builds HTTP sessions and fetch clients from a CrawlConfig.

    - "requests" uses a plain requests.Session with a browser User-Agent.
    - "curl" uses curl_cffi with a browser TLS fingerprint, for when the
      platform starts answering plain clients with challenges.
    Sessions are created per thread by the FetchClient, so the factory only
    hands out a constructor.
    """

    def __init__(self, config: CrawlConfig, metrics: Optional[FetchMetrics] = None) -> None:
        if config.transport not in TRANSPORTS:
            raise ValueError(f"Unknown transport: {config.transport}")
        self._config = config
        self._metrics = metrics

    def session_factory(self) -> Callable[[], Any]:
        config = self._config
        if config.transport == "curl":
            return lambda: curl_requests.Session(impersonate=config.impersonate)

        def _requests_session() -> requests.Session:
            session = requests.Session()
            session.headers.update({"User-Agent": config.user_agent})
            return session

        return _requests_session

    def create_client(self) -> FetchClient:
        return FetchClient(
            session_factory=self.session_factory(),
            backoff=FixedBackoff(self._config.retry_delay),
            timeout=self._config.timeout,
            max_attempts=self._config.max_attempts,
            metrics=self._metrics,
        )

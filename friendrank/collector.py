from __future__ import annotations

import logging
import queue
import threading
from typing import AbstractSet, Callable, Iterable, Iterator, List

from .controller import AdmissionController
from .models import Observation, SourceReport

logger = logging.getLogger(__name__)

MAX_WORKERS = 12

_DONE = object()


def worker_count(n_sources: int, cap: int = MAX_WORKERS) -> int:
    """Concurrent crawls for n_sources.

    One worker per three sources plus one, capped. Below two workers every
    source gets its own, which for one source means exactly one.
    """
    workers = n_sources // 3 + 1
    if workers > cap:
        workers = cap
    if workers < 2:
        workers = n_sources
    return workers


class BoundedCollector:
    """Crawls many sources concurrently and fans their ratings into one stream.

    crawl_source(identity) yields that identity's observations; it is run
    once per source, at most worker_count(len(sources)) at a time. Items in
    the excluded set are dropped before they reach the output. A source
    whose crawl raises keeps what it produced up to that point and never
    affects the others.
    """

    def __init__(
        self,
        crawl_source: Callable[[str], Iterable[Observation]],
        max_workers: int = MAX_WORKERS,
    ) -> None:
        # below two the small-set override in worker_count would lift the cap
        if max_workers < 2:
            raise ValueError("max_workers must be >= 2")
        self._crawl_source = crawl_source
        self._max_workers = max_workers
        self._reports: List[SourceReport] = []

    @property
    def reports(self) -> List[SourceReport]:
        """Per-source outcomes of the last completed run."""
        return list(self._reports)

    def collect(self, sources: Iterable[str], excluded: AbstractSet[str] = frozenset()) -> List[Observation]:
        return list(self.stream(sources, excluded))

    def stream(self, sources: Iterable[str], excluded: AbstractSet[str] = frozenset()) -> Iterator[Observation]:
        sources = list(sources)
        self._reports = []
        if not sources:
            return

        workers = worker_count(len(sources), self._max_workers)
        logger.info("Collecting ratings of %d users with %d workers", len(sources), workers)

        sink: queue.Queue = queue.Queue()
        feeder = threading.Thread(
            target=self._feed,
            args=(sources, frozenset(excluded), workers, sink),
            name="friendrank-feeder",
            daemon=True,
        )
        feeder.start()

        while True:
            batch = sink.get()
            if batch is _DONE:
                break
            yield from batch
        feeder.join()

    def _feed(self, sources: List[str], excluded: AbstractSet[str], workers: int, sink: queue.Queue) -> None:
        try:
            with AdmissionController(workers) as controller:
                futures = [controller.submit(self._crawl_one, source, excluded, sink) for source in sources]
            self._reports = [f.result() for f in futures]
        finally:
            sink.put(_DONE)

    def _crawl_one(self, source: str, excluded: AbstractSet[str], sink: queue.Queue) -> SourceReport:
        kept: List[Observation] = []
        dropped = 0
        error_type = None
        try:
            for obs in self._crawl_source(source):
                if obs.item_key in excluded:
                    dropped += 1
                    continue
                kept.append(obs)
        except Exception as exc:  # noqa: BLE001
            error_type = type(exc).__name__
            logger.warning("Crawl of '%s' failed after %d ratings: %s", source, len(kept), exc)

        sink.put(kept)
        logger.info("'%s' is finished, %d ratings found", source, len(kept))
        return SourceReport(
            identity=source,
            observation_count=len(kept),
            excluded_count=dropped,
            error_type=error_type,
        )

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Iterable, Iterator, List, Optional, TypeVar

from .client import FetchClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PaginationCrawler(Generic[T]):
    """Follows "next" links from a start page and yields extracted items.

    extract(document) returns the items of one page and next_link(document)
    the URL of the following page, or None on the last one. Pages are
    fetched strictly one after another.

    With stop_when_empty the crawl also ends at the first page without
    entries, even if it links to another page. Listings sorted by rating put
    unrated entries last, so there is nothing left to find past that point.
    has_entries(document) decides what counts as an entry; without it a page
    is empty when extract returns nothing. Entries that extract filters out
    still count, so a page of dropped values does not end the crawl.

    A failed fetch ends the crawl; whatever was yielded before stands.
    """

    def __init__(
        self,
        client: FetchClient,
        extract: Callable[[Any], Iterable[T]],
        next_link: Callable[[Any], Optional[str]],
        stop_when_empty: bool = False,
        has_entries: Optional[Callable[[Any], bool]] = None,
    ) -> None:
        self._client = client
        self._extract = extract
        self._next_link = next_link
        self._stop_when_empty = stop_when_empty
        self._has_entries = has_entries

    def crawl(self, start: str) -> Iterator[T]:
        url: Optional[str] = start
        pages = 0
        while url:
            page = self._client.fetch(url)
            if not page.success:
                logger.warning("Stopping crawl at %s: %s", url, page.failure.value if page.failure else "failed")
                return
            pages += 1

            items = list(self._extract(page.document))
            yield from items

            if self._stop_when_empty and not self._page_has_entries(page.document, items):
                logger.debug("No entries on %s, crawl of %s ends after %d page(s)", url, start, pages)
                return
            url = self._next_link(page.document)
        logger.debug("Crawl of %s ends after %d page(s)", start, pages)

    def _page_has_entries(self, document: Any, items: List[T]) -> bool:
        if self._has_entries is not None:
            return self._has_entries(document)
        return bool(items)

from __future__ import annotations

import logging
import re
import string
from functools import partial
from typing import Any, Iterable, Iterator, List, Optional, Tuple
from urllib.parse import urljoin

from .client import FetchClient
from .config import CrawlConfig, ListingSelectors
from .crawler import PaginationCrawler
from .errors import FailureKind, UnknownIdentityError
from .models import RATING_SCALE, Observation, PageResult

logger = logging.getLogger(__name__)

_HANDLE_CHARS = frozenset(string.ascii_letters + string.digits)


def extract_following(document: Any, selectors: ListingSelectors) -> List[str]:
    """Handles listed on one page of a following table."""
    handles: List[str] = []
    for link in document.select(selectors.person_link):
        href = link.get("href")
        if not href:
            continue
        handle = href.replace("/", "")
        if handle:
            handles.append(handle)
    return handles


def extract_film_keys(document: Any, selectors: ListingSelectors) -> List[str]:
    """Item keys of every poster on one page, rated or not."""
    keys: List[str] = []
    for poster in document.select(selectors.poster):
        link = poster.select_one(selectors.item_link)
        key = link.get(selectors.item_link_attr) if link is not None else None
        if key:
            keys.append(key)
    return keys


def parse_rating(classes: Any, prefix: str) -> Optional[int]:
    """Rating encoded in the last class of a rating element, e.g. "rated-7"."""
    if isinstance(classes, str):
        classes = classes.split()
    if not classes:
        return None
    last = classes[-1]
    if not last.startswith(prefix):
        return None
    try:
        return int(last[len(prefix):])
    except ValueError:
        return None


def extract_ratings(document: Any, selectors: ListingSelectors) -> List[Observation]:
    """Observations for the rated posters on one page.

    Posters without a rating element are skipped, as are ratings that do
    not parse or fall outside the scale.
    """
    observations: List[Observation] = []
    for poster in document.select(selectors.poster):
        link = poster.select_one(selectors.item_link)
        key = link.get(selectors.item_link_attr) if link is not None else None
        if not key:
            continue
        rating_el = poster.select_one(selectors.rating)
        if rating_el is None:
            continue
        rating = parse_rating(rating_el.get("class"), selectors.rating_class_prefix)
        if rating is None:
            logger.debug("Unreadable rating for %s: %s", key, rating_el.get("class"))
            continue
        if rating not in RATING_SCALE:
            logger.debug("Dropping out-of-scale rating %d for %s", rating, key)
            continue
        observations.append(Observation(item_key=key, rating=rating))
    return observations


def page_has_ratings(document: Any, selectors: ListingSelectors) -> bool:
    """True if any poster on the page carries a rating element, readable or not."""
    return any(poster.select_one(selectors.rating) is not None for poster in document.select(selectors.poster))


def find_next_link(document: Any, selectors: ListingSelectors, base_url: str) -> Optional[str]:
    link = document.select_one(selectors.next_page)
    href = link.get("href") if link is not None else None
    if not href:
        return None
    return urljoin(base_url, href)


def parse_rated_count(document: Any, selectors: ListingSelectors) -> Optional[int]:
    """Number of rated items from a rated-listing header ("<user> has 1,234 ...")."""
    marker = document.select_one(selectors.rated_count_marker)
    if marker is None or marker.parent is None:
        return None
    parts = marker.parent.get_text().split("has")
    if len(parts) < 2:
        return None
    digits = "".join(re.findall(r"[0-9]", parts[1]))
    return int(digits) if digits else None


class LetterboxdScraper:
    """Binds the extractors to the platform's URL space."""

    def __init__(
        self,
        client: FetchClient,
        config: Optional[CrawlConfig] = None,
        selectors: Optional[ListingSelectors] = None,
    ) -> None:
        self._client = client
        self._config = config or CrawlConfig()
        self._selectors = selectors or ListingSelectors()
        self._next_link = partial(
            find_next_link, selectors=self._selectors, base_url=self._config.base_url
        )

    @property
    def selectors(self) -> ListingSelectors:
        return self._selectors

    def url(self, handle: str, *path: str) -> str:
        return "/".join([self._config.base_url.rstrip("/"), handle, *path]) + "/"

    def profile(self, handle: str) -> PageResult:
        return self._client.fetch(self.url(handle))

    def following(self, handle: str) -> List[str]:
        crawler = PaginationCrawler(
            self._client,
            extract=partial(extract_following, selectors=self._selectors),
            next_link=self._next_link,
        )
        return list(crawler.crawl(self.url(handle, "following")))

    def all_films(self, handle: str) -> List[str]:
        crawler = PaginationCrawler(
            self._client,
            extract=partial(extract_film_keys, selectors=self._selectors),
            next_link=self._next_link,
        )
        films = list(crawler.crawl(self.url(handle, "films")))
        logger.info("'%s' is finished, %d films found", handle, len(films))
        return films

    def rated_observations(self, handle: str) -> Iterator[Observation]:
        crawler = PaginationCrawler(
            self._client,
            extract=partial(extract_ratings, selectors=self._selectors),
            next_link=self._next_link,
            stop_when_empty=True,
            has_entries=partial(page_has_ratings, selectors=self._selectors),
        )
        return crawler.crawl(self.url(handle, "films", "by", "member-rating"))

    def rated_count(self, handle: str) -> int:
        page = self._client.fetch(self.url(handle, "films", "rated", ".5-5"))
        if not page.success:
            return 0
        count = parse_rated_count(page.document, self._selectors)
        if count is None:
            logger.warning("No rated count found for '%s' (%s)", handle, FailureKind.UNPARSEABLE.value)
            return 0
        return count


class IdentityResolver:
    """Checks handles and expands a seed handle into its friend set."""

    def __init__(self, scraper: LetterboxdScraper) -> None:
        self._scraper = scraper

    @staticmethod
    def is_valid_handle(handle: str) -> bool:
        return bool(handle) and all(c in _HANDLE_CHARS for c in handle.replace("_", ""))

    def exists(self, handle: str) -> bool:
        return self._check(handle) is None

    def require(self, handle: str) -> str:
        failure = self._check(handle)
        if failure is not None:
            raise UnknownIdentityError(handle, failure)
        return handle

    def expand(self, handle: str) -> List[str]:
        return self._scraper.following(handle)

    def resolve_friends(self, handle: str, explicit: Optional[Iterable[str]] = None) -> List[str]:
        """Explicitly named handles that exist, or everyone the seed follows."""
        names = [n.strip() for n in (explicit or []) if n and n.strip()]
        if not names:
            return list(dict.fromkeys(self.expand(handle)))
        friends = []
        for name in dict.fromkeys(names):
            if self.exists(name):
                friends.append(name)
            else:
                logger.warning('The user "%s" does not exist.', name)
        return friends

    def order_by_activity(self, handles: Iterable[str]) -> List[Tuple[str, int]]:
        """Pair each handle with its rated count, busiest first."""
        counted = [(h, self._scraper.rated_count(h)) for h in handles]
        return sorted(counted, key=lambda pair: -pair[1])

    def _check(self, handle: str) -> Optional[FailureKind]:
        if not self.is_valid_handle(handle):
            return FailureKind.UNPARSEABLE
        page = self._scraper.profile(handle)
        if not page.success:
            return FailureKind.UNREACHABLE
        if page.document.select_one(self._scraper.selectors.profile_header) is None:
            return FailureKind.UNPARSEABLE
        return None

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_BASE_URL = "https://letterboxd.com"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/126.0.0.0 Safari/537.36"
)


@dataclass(frozen=True)
class CrawlConfig:
    """Runtime knobs for fetching, collection and the ranked report."""

    base_url: str = DEFAULT_BASE_URL
    timeout: float = 10.0
    max_attempts: int = 10
    retry_delay: float = 1.0
    max_workers: int = 12
    transport: str = "requests"
    impersonate: str = "chrome120"
    user_agent: str = DEFAULT_USER_AGENT
    top_k: int = 15


@dataclass(frozen=True)
class ListingSelectors:
    """CSS selectors and attribute names for the platform's list markup."""

    poster: str = "li.poster-container"
    item_link: str = "div"
    item_link_attr: str = "data-target-link"
    rating: str = "p span.rating"
    rating_class_prefix: str = "rated-"
    next_page: str = "div.pagination a.next"
    person_link: str = "td.table-person h3 a"
    profile_header: str = "body header section"
    rated_count_marker: str = "span.replace-if-you"

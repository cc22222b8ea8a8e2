from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, List, Optional, Sequence

from friendrank.aggregation import aggregate
from friendrank.collector import MAX_WORKERS, BoundedCollector
from friendrank.config import DEFAULT_BASE_URL, CrawlConfig
from friendrank.errors import UnknownIdentityError
from friendrank.factory import TRANSPORTS, ClientFactory
from friendrank.metrics import FetchMetrics
from friendrank.models import Observation
from friendrank.ranking import DEFAULT_TOP_K
from friendrank.scrapers import IdentityResolver, LetterboxdScraper
from friendrank.session import RankingSession
from friendrank.storage import EXPORTERS, get_exporter
from friendrank.strategies import STRATEGIES, get_strategy

logger = logging.getLogger("friendrank")

LARGE_RUN_THRESHOLD = 3000


def estimate_minutes(rated_counts: Sequence[int]) -> float:
    """Rough runtime: the busiest user dominates, ~3000 ratings per minute."""
    return max(max(rated_counts, default=0) / 3000, 0.1)


def _split_handles(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [h for h in raw.replace(" ", "").split(",") if h]


def _confirm(question: str, read: Callable[[], str] = input) -> bool:
    print(question)
    try:
        return "y" in read().strip()
    except EOFError:
        return False


def run(args: argparse.Namespace) -> int:
    config = CrawlConfig(
        base_url=args.base_url,
        timeout=args.timeout,
        max_attempts=args.attempts,
        retry_delay=args.retry_delay,
        max_workers=args.workers_cap,
        transport=args.transport,
        top_k=args.top,
    )
    metrics = FetchMetrics()
    client = ClientFactory(config, metrics=metrics).create_client()
    scraper = LetterboxdScraper(client, config)
    resolver = IdentityResolver(scraper)

    try:
        user = resolver.require(args.user)
    except UnknownIdentityError as exc:
        print(f"\n{exc}")
        return 2

    print("\nThe friends list is generated..." if not args.friends else "\nThe given users are checked...")
    friends = resolver.resolve_friends(user, _split_handles(args.friends))
    if not friends:
        print("\nNo user was found!")
        return 1

    print("\nThe number of rated films is collected...")
    ordered = resolver.order_by_activity(friends)
    friends = [handle for handle, _ in ordered]
    counts = [count for _, count in ordered]
    total = sum(counts)
    print(f"{total} films were found.\n\nThese eligible users were given:")
    for handle, count in ordered:
        print(f"{handle}, {count} rated films")
    print()

    excluded: frozenset = frozenset()
    if args.exclude_watched:
        excluded = frozenset(scraper.all_films(user))
        print(f"{len(excluded)} films found. These will be excluded.\n")

    if total > LARGE_RUN_THRESHOLD:
        print(f"\n{total} films will be searched.")
        print(f"This could take a while, estimated time: {estimate_minutes(counts):.1f} min.")
        if not args.yes and not _confirm("Do you want to start? (y/n)"):
            return 0

    collector = BoundedCollector(scraper.rated_observations, max_workers=config.max_workers)
    observations: List[Observation] = collector.collect(friends, excluded)
    snapshot = metrics.snapshot()
    logger.info(
        "Fetched %d pages (%d failed, %d retries, %.0f ms avg)",
        snapshot.total_requests,
        snapshot.failure_count,
        snapshot.retry_count,
        snapshot.avg_latency_ms,
    )

    print("All ratings are combined...")
    scored = aggregate(observations, get_strategy(args.scoring))
    print(f"{len(scored)} unique and rated films are found.\n")

    session = RankingSession(
        scored,
        max_threshold=len(friends),
        exporter=get_exporter(args.format),
        read=input,
        write=print,
        top_k=config.top_k,
        default_destination=f"results.{args.format}",
    )
    session.run()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="friendrank",
        description="Rank films by the combined ratings of the people you follow on Letterboxd.",
    )
    parser.add_argument("user", help="Your Letterboxd username")
    parser.add_argument("--friends", default=None, help='Only use these users, e.g. "user1, user2, user3"')
    parser.add_argument("--exclude-watched", action="store_true", help="Exclude films you have already watched")

    parser.add_argument("--scoring", choices=sorted(STRATEGIES), default="mean", help="Score used for ranking")
    parser.add_argument("--format", choices=sorted(EXPORTERS), default="csv", help="Export file format")
    parser.add_argument("--top", type=int, default=DEFAULT_TOP_K, help="Number of films shown per ranking")

    parser.add_argument("--workers-cap", type=int, default=MAX_WORKERS, help="Max concurrent user crawls")
    parser.add_argument("--timeout", type=float, default=10.0, help="Per-request timeout seconds")
    parser.add_argument("--attempts", type=int, default=10, help="Attempts per page before giving up")
    parser.add_argument("--retry-delay", type=float, default=1.0, help="Seconds between attempts")
    parser.add_argument("--transport", choices=TRANSPORTS, default="requests", help="HTTP client")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help=argparse.SUPPRESS)

    parser.add_argument("--yes", action="store_true", help="Do not ask before long runs")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s: %(message)s",
    )

    sys.exit(run(args))


if __name__ == "__main__":
    main()

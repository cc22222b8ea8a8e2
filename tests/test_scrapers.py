"""Tests for the platform extractors, LetterboxdScraper and IdentityResolver."""

import unittest

from bs4 import BeautifulSoup

from friendrank.backoff import FixedBackoff
from friendrank.client import FetchClient
from friendrank.config import CrawlConfig, ListingSelectors
from friendrank.errors import FailureKind, UnknownIdentityError
from friendrank.models import Observation
from friendrank.scrapers import (
    IdentityResolver,
    LetterboxdScraper,
    extract_film_keys,
    extract_following,
    extract_ratings,
    find_next_link,
    page_has_ratings,
    parse_rated_count,
    parse_rating,
)

BASE = "https://letterboxd.com"
SELECTORS = ListingSelectors()


def _poster(key, rating=None):
    rating_html = ""
    if rating is not None:
        rating_html = f'<p class="poster-viewingdata"><span class="rating rated-{rating}">*</span></p>'
    return f'<li class="poster-container"><div class="film-poster" data-target-link="{key}"></div>{rating_html}</li>'


def _page(body, next_href=None):
    nav = f'<div class="pagination"><a class="next" href="{next_href}">Older</a></div>' if next_href else ""
    return f"<html><body><ul>{body}</ul>{nav}</body></html>"


def _soup(html):
    return BeautifulSoup(html, "html.parser")


PROFILE = "<html><body><header><section>profile</section></header></body></html>"


class _FakeResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text


class _SiteSession:
    """Serves HTML by URL; unknown URLs answer 404."""

    def __init__(self, pages):
        self._pages = pages
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        if url in self._pages:
            return _FakeResponse(200, self._pages[url])
        return _FakeResponse(404, "not found")


def _scraper(pages, **config):
    session = _SiteSession(pages)
    client = FetchClient(session_factory=lambda: session, backoff=FixedBackoff(0), max_attempts=2)
    return LetterboxdScraper(client, CrawlConfig(**config)), session


class TestExtractRatings(unittest.TestCase):
    """Verify observations are extracted only from valid rated posters."""

    def test_rated_posters_become_observations(self):
        doc = _soup(_page(_poster("/film/heat/", 8) + _poster("/film/alien/", 0)))
        self.assertEqual(
            extract_ratings(doc, SELECTORS),
            [Observation("/film/heat/", 8), Observation("/film/alien/", 0)],
        )

    def test_unrated_posters_are_skipped(self):
        doc = _soup(_page(_poster("/film/heat/") + _poster("/film/alien/", 5)))
        self.assertEqual(extract_ratings(doc, SELECTORS), [Observation("/film/alien/", 5)])

    def test_out_of_scale_ratings_are_dropped(self):
        """Ratings outside 0..9 must never become observations."""
        doc = _soup(_page(_poster("/film/a/", 10) + _poster("/film/b/", 12) + _poster("/film/c/", 9)))
        self.assertEqual(extract_ratings(doc, SELECTORS), [Observation("/film/c/", 9)])

    def test_page_has_ratings_counts_dropped_values(self):
        """Out-of-scale and unreadable ratings still mark the page as rated."""
        self.assertTrue(page_has_ratings(_soup(_page(_poster("/film/a/", 10))), SELECTORS))
        self.assertTrue(page_has_ratings(_soup(_page(_poster("/film/a/", "abc"))), SELECTORS))
        self.assertFalse(page_has_ratings(_soup(_page(_poster("/film/a/"))), SELECTORS))

    def test_unparseable_rating_is_skipped(self):
        doc = _soup(_page(_poster("/film/a/", "abc")))
        self.assertEqual(extract_ratings(doc, SELECTORS), [])

    def test_page_without_posters(self):
        self.assertEqual(extract_ratings(_soup("<html><body></body></html>"), SELECTORS), [])


class TestParseRating(unittest.TestCase):
    """Verify the rating class parser."""

    def test_last_class_is_used(self):
        self.assertEqual(parse_rating(["rating", "rated-7"], "rated-"), 7)

    def test_string_classes(self):
        self.assertEqual(parse_rating("rating rated-3", "rated-"), 3)

    def test_missing_prefix(self):
        self.assertIsNone(parse_rating(["rating"], "rated-"))
        self.assertIsNone(parse_rating(None, "rated-"))


class TestListingExtractors(unittest.TestCase):
    """Verify the film, following and pagination extractors."""

    def test_film_keys_include_unrated(self):
        doc = _soup(_page(_poster("/film/heat/") + _poster("/film/alien/", 4)))
        self.assertEqual(extract_film_keys(doc, SELECTORS), ["/film/heat/", "/film/alien/"])

    def test_following_handles(self):
        html = (
            "<table><tr><td class='table-person'><h3><a href='/alice/'>Alice</a></h3></td></tr>"
            "<tr><td class='table-person'><h3><a href='/bob_b/'>Bob</a></h3></td></tr></table>"
        )
        self.assertEqual(extract_following(_soup(html), SELECTORS), ["alice", "bob_b"])

    def test_next_link_is_absolute(self):
        doc = _soup(_page("", next_href="/alice/films/page/2/"))
        self.assertEqual(find_next_link(doc, SELECTORS, BASE), BASE + "/alice/films/page/2/")

    def test_no_next_link(self):
        self.assertIsNone(find_next_link(_soup(_page("")), SELECTORS, BASE))

    def test_rated_count(self):
        html = '<p><span class="replace-if-you">alice</span> has rated 1,234 films</p>'
        self.assertEqual(parse_rated_count(_soup(html), SELECTORS), 1234)

    def test_rated_count_missing(self):
        self.assertIsNone(parse_rated_count(_soup("<p>nothing</p>"), SELECTORS))


class TestLetterboxdScraper(unittest.TestCase):
    """Verify the scraper crawls the right URLs with the right policy."""

    def test_rated_observations_stop_at_first_unrated_page(self):
        pages = {
            BASE + "/alice/films/by/member-rating/": _page(
                _poster("/film/a/", 9) + _poster("/film/b/", 7), next_href="/alice/films/by/member-rating/page/2/"
            ),
            BASE + "/alice/films/by/member-rating/page/2/": _page(
                _poster("/film/c/"), next_href="/alice/films/by/member-rating/page/3/"
            ),
            BASE + "/alice/films/by/member-rating/page/3/": _page(_poster("/film/d/", 5)),
        }
        scraper, session = _scraper(pages)
        observations = list(scraper.rated_observations("alice"))
        self.assertEqual(observations, [Observation("/film/a/", 9), Observation("/film/b/", 7)])
        self.assertNotIn(BASE + "/alice/films/by/member-rating/page/3/", session.calls)

    def test_rated_observations_continue_past_page_of_top_ratings(self):
        """A first page of only rated-10 posters yields nothing but is not the end."""
        pages = {
            BASE + "/bob/films/by/member-rating/": _page(
                _poster("/film/a/", 10) + _poster("/film/b/", 10), next_href="/bob/films/by/member-rating/page/2/"
            ),
            BASE + "/bob/films/by/member-rating/page/2/": _page(_poster("/film/c/", 9) + _poster("/film/d/", 8)),
        }
        scraper, session = _scraper(pages)
        observations = list(scraper.rated_observations("bob"))
        self.assertEqual(observations, [Observation("/film/c/", 9), Observation("/film/d/", 8)])
        self.assertIn(BASE + "/bob/films/by/member-rating/page/2/", session.calls)

    def test_all_films_follow_every_page(self):
        pages = {
            BASE + "/alice/films/": _page(_poster("/film/a/"), next_href="/alice/films/page/2/"),
            BASE + "/alice/films/page/2/": _page(_poster("/film/b/", 3)),
        }
        scraper, _ = _scraper(pages)
        self.assertEqual(scraper.all_films("alice"), ["/film/a/", "/film/b/"])

    def test_rated_count_defaults_to_zero(self):
        scraper, _ = _scraper({})
        self.assertEqual(scraper.rated_count("ghost"), 0)

    def test_rated_count_url(self):
        pages = {
            BASE + "/alice/films/rated/.5-5/": '<p><span class="replace-if-you">alice</span> has 42 films</p>',
        }
        scraper, _ = _scraper(pages)
        self.assertEqual(scraper.rated_count("alice"), 42)


class TestIdentityResolver(unittest.TestCase):
    """Verify handle checks and friend resolution."""

    def setUp(self):
        self.pages = {
            BASE + "/alice/": PROFILE,
            BASE + "/bob/": PROFILE,
            BASE + "/blank/": "<html><body><p>no header</p></body></html>",
            BASE + "/alice/following/": (
                "<table><tr><td class='table-person'><h3><a href='/bob/'>Bob</a></h3></td></tr></table>"
                '<div class="pagination"><a class="next" href="/alice/following/page/2/">Next</a></div>'
            ),
            BASE + "/alice/following/page/2/": (
                "<table><tr><td class='table-person'><h3><a href='/carol/'>Carol</a></h3></td></tr>"
                "<tr><td class='table-person'><h3><a href='/bob/'>Bob</a></h3></td></tr></table>"
            ),
            BASE + "/bob/films/rated/.5-5/": '<p><span class="replace-if-you">bob</span> has 10 films</p>',
            BASE + "/carol/films/rated/.5-5/": '<p><span class="replace-if-you">carol</span> has 300 films</p>',
        }
        scraper, self.session = _scraper(self.pages)
        self.resolver = IdentityResolver(scraper)

    def test_handle_syntax(self):
        self.assertTrue(IdentityResolver.is_valid_handle("film_fan_99"))
        self.assertFalse(IdentityResolver.is_valid_handle("bad name"))
        self.assertFalse(IdentityResolver.is_valid_handle("semi;colon"))
        self.assertFalse(IdentityResolver.is_valid_handle(""))

    def test_invalid_handle_is_not_fetched(self):
        self.assertFalse(self.resolver.exists("no/slashes"))
        self.assertEqual(self.session.calls, [])

    def test_exists(self):
        self.assertTrue(self.resolver.exists("alice"))
        self.assertFalse(self.resolver.exists("blank"))
        self.assertFalse(self.resolver.exists("ghost"))

    def test_require_raises_with_failure_kind(self):
        self.assertEqual(self.resolver.require("alice"), "alice")
        with self.assertRaises(UnknownIdentityError) as ctx:
            self.resolver.require("ghost")
        self.assertEqual(ctx.exception.kind, FailureKind.UNREACHABLE)
        with self.assertRaises(UnknownIdentityError) as ctx:
            self.resolver.require("blank")
        self.assertEqual(ctx.exception.kind, FailureKind.UNPARSEABLE)
        self.assertIn("blank", str(ctx.exception))

    def test_expand_follows_pagination(self):
        self.assertEqual(self.resolver.expand("alice"), ["bob", "carol", "bob"])

    def test_resolve_friends_from_following(self):
        """Without explicit names the following list is used, deduplicated."""
        self.assertEqual(self.resolver.resolve_friends("alice"), ["bob", "carol"])

    def test_resolve_friends_explicit(self):
        """Explicit names are checked and unknown ones dropped."""
        friends = self.resolver.resolve_friends("alice", [" bob", "ghost", "bob", ""])
        self.assertEqual(friends, ["bob"])

    def test_order_by_activity(self):
        self.assertEqual(
            self.resolver.order_by_activity(["bob", "carol", "ghost"]),
            [("carol", 300), ("bob", 10), ("ghost", 0)],
        )


if __name__ == "__main__":
    unittest.main()

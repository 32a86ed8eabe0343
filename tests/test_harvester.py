"""Tests for the listing harvester.

Harvesting must:
1. Follow the next-page control until a page has none
2. Keep every link in page order, duplicates included
3. Treat a first-page failure as fatal
4. Keep earlier pages when a later page fails, stop there and mark the
   harvest incomplete
"""

import pytest

from harrow.common.exceptions import (
    FetchException,
    ListingUnavailableException,
)
from harrow.harvester import ListingHarvester, parse_listing
from tests.utils import CountingFetch


def listing_html(hrefs, next_href=None):
    items = "".join(f'<li><a href="{h}">x</a></li>' for h in hrefs)
    button = f'<button href="{next_href}">More</button>' if next_href else ""
    return f"<html><body><ul>{items}</ul>{button}</body></html>".encode()


class TestParseListing:
    """Tests for parse_listing()."""

    def test_links_in_document_order(self):
        """Links shall be returned in the order they appear."""
        page = parse_listing(
            listing_html(["http://a/3", "http://a/1", "http://a/2"]),
            "http://a/list",
        )
        assert page.links == ("http://a/3", "http://a/1", "http://a/2")

    def test_relative_links_are_resolved(self):
        """Relative hrefs shall be resolved against the page URL."""
        page = parse_listing(
            listing_html(["/wanted/x", "y"], next_href="?page=2"),
            "http://a/list/index",
        )
        assert page.links == ("http://a/wanted/x", "http://a/list/y")
        assert page.next_url == "http://a/list/index?page=2"

    def test_no_next_control_is_last_page(self):
        """A page with no next control shall be the last page."""
        page = parse_listing(listing_html(["http://a/1"]), "http://a/list")
        assert page.next_url is None
        assert page.is_last

    def test_first_next_control_wins(self):
        """With several next controls the first shall be used."""
        content = (
            b'<html><body><button href="/p2">a</button>'
            b'<button href="/p9">b</button></body></html>'
        )
        page = parse_listing(content, "http://a/p1")
        assert page.next_url == "http://a/p2"

    def test_links_outside_list_items_ignored(self):
        """Only anchors directly inside list items shall count."""
        content = (
            b'<html><body><a href="/nav">nav</a>'
            b'<li><a href="/wanted/x">x</a></li>'
            b'<li><span><a href="/deep">d</a></span></li></body></html>'
        )
        page = parse_listing(content, "http://a/")
        assert page.links == ("http://a/wanted/x",)


class TestHarvestWithCannedPages:
    """Tests for ListingHarvester.harvest() with a canned fetch."""

    def test_duplicates_are_kept(self):
        """The same URL on several pages shall appear each time."""
        fetch = CountingFetch(
            {
                "http://a/p1": listing_html(["http://a/1"], "http://a/p2"),
                "http://a/p2": listing_html(["http://a/1", "http://a/2"]),
            }
        )
        urls = ListingHarvester(fetch).harvest("http://a/p1")
        assert urls == ["http://a/1", "http://a/1", "http://a/2"]

    def test_unparseable_first_page_is_fatal(self):
        """An empty first page shall raise ListingUnavailableException."""
        fetch = CountingFetch({"http://a/p1": b"   "})
        with pytest.raises(ListingUnavailableException) as exc_info:
            ListingHarvester(fetch).harvest("http://a/p1")
        assert exc_info.value.url == "http://a/p1"

    def test_first_page_fetch_failure_is_fatal(self):
        """A first page fetch failure shall raise ListingUnavailableException."""
        fetch = CountingFetch(
            {"http://a/p1": FetchException("http://a/p1", message="down")}
        )
        with pytest.raises(ListingUnavailableException) as exc_info:
            ListingHarvester(fetch).harvest("http://a/p1")
        assert isinstance(exc_info.value.__cause__, FetchException)

    def test_unparseable_later_page_keeps_earlier_links(self):
        """A later page that cannot be parsed shall stop harvesting."""
        fetch = CountingFetch(
            {
                "http://a/p1": listing_html(["http://a/1"], "http://a/p2"),
                "http://a/p2": b"",
            }
        )
        assert ListingHarvester(fetch).harvest("http://a/p1") == [
            "http://a/1"
        ]


class TestHarvestAgainstServer:
    """Tests for ListingHarvester.harvest() against the mock site."""

    def test_follows_all_pages(self, request_manager, mock_site):
        """Harvesting shall visit every page and keep listing order."""
        harvester = ListingHarvester(request_manager.fetch)
        urls = harvester.harvest(f"{mock_site.url}/listing/1")

        assert urls == [
            f"{mock_site.url}/wanted/barry-beetle",
            f"{mock_site.url}/wanted/monarch-butterfly",
            f"{mock_site.url}/wanted/webster-spider",
            f"{mock_site.url}/wanted/gary-grasshopper",
            f"{mock_site.url}/wanted/lucy-ladybug",
        ]
        for page in (1, 2, 3):
            assert mock_site.hits[f"/listing/{page}"] == 1
        assert harvester.complete is True

    def test_listing_pages_are_always_fetched_live(
        self, request_manager, mock_site
    ):
        """Harvesting twice shall fetch every listing page twice."""
        harvester = ListingHarvester(request_manager.fetch)
        harvester.harvest(f"{mock_site.url}/listing/1")
        harvester.harvest(f"{mock_site.url}/listing/1")
        assert mock_site.hits["/listing/1"] == 2

    def test_missing_first_page_is_fatal(self, request_manager, mock_site):
        """A 404 on the first page shall raise ListingUnavailableException."""
        harvester = ListingHarvester(request_manager.fetch)
        with pytest.raises(ListingUnavailableException):
            harvester.harvest(f"{mock_site.url}/listing/99")

    def test_failure_on_page_two_keeps_page_one(
        self, request_manager, mock_site
    ):
        """A failure on page 2 of 3 shall return page 1 and skip page 3."""
        harvester = ListingHarvester(request_manager.fetch)
        urls = harvester.harvest(f"{mock_site.url}/broken/1")

        assert urls == [
            f"{mock_site.url}/wanted/barry-beetle",
            f"{mock_site.url}/wanted/monarch-butterfly",
        ]
        assert mock_site.hits["/broken/2"] == 1
        assert mock_site.hits["/broken/3"] == 0
        assert harvester.complete is False

    def test_empty_page_does_not_stop_harvest(
        self, request_manager, mock_site
    ):
        """A page with no links but a next control shall be followed."""
        harvester = ListingHarvester(request_manager.fetch)
        urls = harvester.harvest(f"{mock_site.url}/empty/1")
        assert urls == [f"{mock_site.url}/wanted/lucy-ladybug"]

    def test_next_page_loop_terminates(self, request_manager, mock_site):
        """A next control pointing back to a visited page shall end harvest."""
        harvester = ListingHarvester(request_manager.fetch)
        urls = harvester.harvest(f"{mock_site.url}/looping/1")

        assert len(urls) == 4
        assert mock_site.hits["/looping/1"] == 1
        assert mock_site.hits["/looping/2"] == 1

    def test_complete_is_reset_between_harvests(
        self, request_manager, mock_site
    ):
        """A full harvest after a partial one shall be marked complete."""
        harvester = ListingHarvester(request_manager.fetch)
        harvester.harvest(f"{mock_site.url}/broken/1")
        assert harvester.complete is False

        harvester.harvest(f"{mock_site.url}/listing/1")
        assert harvester.complete is True

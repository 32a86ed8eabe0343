"""Listing harvester: follow the paginated listing and collect detail URLs.

The harvester walks pages in order::

    Start -> FetchPage -> {ExtractLinks, DetectNext} -> FetchPage | Done

Listing pages are always fetched live (never through the byte cache)
because they are expected to change between runs.

Failure rules:

- The first page failing to fetch or parse is fatal
  (ListingUnavailableException), since there is no listing without it.
- Any later page failing stops harvesting and returns what was collected so
  far. Previously harvested pages are never voided by a deep failure.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from urllib.parse import urljoin

from harrow.common.checked_html import parse_html
from harrow.common.exceptions import (
    FetchException,
    ListingUnavailableException,
    PageParseException,
)
from harrow.data_types import ListingPage

logger = logging.getLogger(__name__)

LINK_XPATH = "//li/a/@href"
NEXT_PAGE_XPATH = "//button[@href]/@href"


def parse_listing(content: bytes | str, url: str) -> ListingPage:
    """Parse one listing page.

    Args:
        content: The page bytes.
        url: The page URL; relative links are resolved against it.

    Returns:
        ListingPage with links in document order and the next-page URL.

    Raises:
        PageParseException: If the content is not parseable.
    """
    tree = parse_html(content, url)
    links = tuple(
        urljoin(url, href.strip())
        for href in tree.checked_xpath(
            LINK_XPATH, "list-item links", min_count=0, type=str
        )
    )
    next_hrefs = tree.checked_xpath(
        NEXT_PAGE_XPATH, "next page control", min_count=0, type=str
    )
    next_url = urljoin(url, next_hrefs[0].strip()) if next_hrefs else None
    return ListingPage(url=url, links=links, next_url=next_url)


class ListingHarvester:
    """Collects detail-page URLs across every page of a listing.

    Example::

        with SyncRequestManager() as manager:
            harvester = ListingHarvester(manager.fetch)
            urls = harvester.harvest(start_url)
    """

    def __init__(self, fetch: Callable[[str], bytes]) -> None:
        """Initialize the harvester.

        Args:
            fetch: Callable returning the bytes at a URL; usually
                SyncRequestManager.fetch, possibly wrapped in a RetryPolicy.
        """
        self.fetch = fetch
        # False after a harvest that stopped at a failing page.
        self.complete = True

    def harvest(self, start_url: str) -> list[str]:
        """Return every detail URL in listing order.

        The result may contain duplicates and is never reordered. After the
        call, ``complete`` is False if a later page failed and the result
        is partial.

        Raises:
            ListingUnavailableException: If the first page cannot be
                fetched or parsed.
        """
        self.complete = True
        urls: list[str] = []
        visited: set[str] = set()
        current: str | None = start_url
        page_count = 0

        while current is not None:
            if current in visited:
                logger.warning(
                    f"Next page {current} was already harvested, stopping"
                )
                break
            visited.add(current)

            try:
                page = self._load_page(current)
            except (FetchException, PageParseException) as e:
                if page_count == 0:
                    raise ListingUnavailableException(current, str(e)) from e
                logger.warning(
                    f"Stopping at listing page {page_count + 1} "
                    f"({current}): {e}; "
                    f"keeping {len(urls)} URLs",
                    extra={"url": current, "pages": page_count},
                )
                self.complete = False
                break

            page_count += 1
            urls.extend(page.links)
            logger.info(
                f"Listing page {page_count}: {len(page.links)} links "
                f"({len(urls)} total)"
            )
            if page.is_last:
                break
            current = page.next_url

        return urls

    def _load_page(self, url: str) -> ListingPage:
        return parse_listing(self.fetch(url), url)

"""Entry extractor: map one detail page onto a WantedRecord.

Field extraction is a fixed table of XPath queries. Every query is optional:
a missing match leaves the field unset and is never an error. The
description table is mapped through DESCRIPTION_LABELS, a static
label -> field table consulted once per row.

Images referenced from the lightbox gallery are fetched through the byte
cache and stored inline as base64 text. A failed image fetch only leaves
the base64 field empty; the record is still produced.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Callable
from typing import Any
from urllib.parse import urljoin

from lxml.html import HtmlElement

from harrow.common.cache import ByteCache
from harrow.common.checked_html import CheckedHtmlElement, parse_html
from harrow.common.exceptions import FetchException
from harrow.models import WantedRecord

logger = logging.getLogger(__name__)

NAME_XPATH = "//h1"
SUMMARY_XPATH = '//p[@class="summary"]'
IMAGE_XPATH = '//div[@class="lightbox-content"]/img/@src'
DESCRIPTION_TABLE = (
    '//table[@class="table table-striped wanted-person-description"]'
)
# Rows with or without an explicit <tbody>.
DESCRIPTION_ROWS_XPATH = (
    f"{DESCRIPTION_TABLE}/tbody/tr | {DESCRIPTION_TABLE}/tr"
)
REWARD_XPATH = '//div[@class="wanted-person-reward"]/p'
DETAILS_XPATH = '//div[@class="wanted-person-details"]/p'
FIELD_OFFICE_XPATH = '//span[@class="field-office"]/p'

# Description table label -> WantedRecord field. Labels must match exactly.
DESCRIPTION_LABELS: dict[str, str] = {
    "Date(s) of Birth Used": "date_of_birth",
    "Place of Birth": "place_of_birth",
    "Hair": "hair",
    "Eyes": "eyes",
    "Height": "height",
    "Weight": "weight",
    "Sex": "sex",
    "Race": "race",
    "Nationality": "nationality",
}

# Single-element text fields: (field, xpath, description)
TEXT_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("reward", REWARD_XPATH, "reward"),
    ("details", DETAILS_XPATH, "details"),
    ("field_office", FIELD_OFFICE_XPATH, "field office"),
)

# Gallery position -> (url field, base64 field)
IMAGE_FIELDS: tuple[tuple[str, str], ...] = (
    ("pic_url", "pic_base64"),
    ("additional_pic_url", "additional_pic_base64"),
)


def split_summary(summary: CheckedHtmlElement) -> tuple[str, str | None]:
    """Split the summary paragraph at its first ``<br>``.

    Breaks nested inside inline elements count too.

    Returns:
        (text before the break, text after it or None if there is no break).
        Further breaks in the second part become newlines.
    """
    parts: list[list[str]] = [[summary.text or ""]]

    def walk(element: HtmlElement) -> None:
        for child in element:
            if child.tag == "br":
                if len(parts) == 1:
                    parts.append([])
                else:
                    parts[1].append("\n")
            elif isinstance(child.tag, str):
                parts[-1].append(child.text or "")
                walk(child)
            parts[-1].append(child.tail or "")

    walk(summary.element)
    first = "".join(parts[0]).strip()
    if len(parts) == 1:
        return first, None
    return first, "".join(parts[1]).strip()


def map_description_rows(
    tree: CheckedHtmlElement,
    labels: dict[str, str] = DESCRIPTION_LABELS,
) -> dict[str, str]:
    """Map description table rows to record fields.

    Only rows with exactly two cells are considered; the first cell is the
    label and the second the value. Unknown labels are ignored.
    """
    fields: dict[str, str] = {}
    for row in tree.checked_xpath(
        DESCRIPTION_ROWS_XPATH, "description rows", min_count=0
    ):
        cells = row.checked_xpath("./td", "description cells", min_count=0)
        if len(cells) != 2:
            continue
        field_name = labels.get(cells[0].text_content().strip())
        if field_name is not None:
            fields[field_name] = cells[1].text_content().strip()
    return fields


class EntryExtractor:
    """Builds a WantedRecord from a detail page URL.

    Example::

        extractor = EntryExtractor(cache, manager.fetch)
        record = extractor.extract(url)
    """

    def __init__(
        self, cache: ByteCache, fetch: Callable[[str], bytes]
    ) -> None:
        """Initialize the extractor.

        Args:
            cache: ByteCache used for both the page and its images.
            fetch: Callable returning the bytes at a URL on a cache miss.
        """
        self.cache = cache
        self.fetch = fetch

    def extract(self, url: str) -> WantedRecord:
        """Fetch (through the cache) and parse the detail page at ``url``.

        Raises:
            FetchException: If the page cannot be retrieved.
            PageParseException: If the page cannot be parsed.
        """
        content = self.cache.fetch_cached(url, lambda: self.fetch(url))
        return self.parse_entry(content, url)

    def parse_entry(self, content: bytes | str, url: str) -> WantedRecord:
        """Apply the field table to page content.

        Raises:
            PageParseException: If the page cannot be parsed.
        """
        tree = parse_html(content, url)
        values: dict[str, Any] = {"id": "", "source": url}

        name = tree.first_text(NAME_XPATH, "name heading")
        if name is not None:
            values["name"] = name.strip()

        summaries = tree.checked_xpath(
            SUMMARY_XPATH, "case summary", min_count=0
        )
        if summaries:
            date_of_case, place_of_case = split_summary(summaries[0])
            values["date_of_case"] = date_of_case
            if place_of_case is not None:
                values["place_of_case"] = place_of_case

        sources = tree.checked_xpath(
            IMAGE_XPATH, "lightbox images", min_count=0, type=str
        )
        for src, (url_field, data_field) in zip(sources, IMAGE_FIELDS):
            src = src.strip()
            values[url_field] = src
            encoded = self.fetch_image(urljoin(url, src))
            if encoded is not None:
                values[data_field] = encoded

        values.update(map_description_rows(tree))

        for field_name, xpath, description in TEXT_FIELDS:
            text = tree.first_text(xpath, description)
            if text is not None:
                values[field_name] = text.strip()

        # Always the input URL, whatever happened above.
        values["source"] = url
        return WantedRecord.model_validate(values)

    def fetch_image(self, image_url: str) -> str | None:
        """Return the image at ``image_url`` as base64 text, or None on failure."""
        try:
            data = self.cache.fetch_cached(
                image_url, lambda: self.fetch(image_url)
            )
        except FetchException as e:
            logger.warning(
                f"Could not fetch image {image_url}: {e}",
                extra={"url": image_url},
            )
            return None
        return base64.b64encode(data).decode("ascii")

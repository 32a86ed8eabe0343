"""Checked HTML element wrapper for safe XPath querying.

This module provides CheckedHtmlElement, a wrapper around
lxml.html.HtmlElement that validates selector results against expected
counts, and parse_html(), which turns fetched bytes into a checked tree.
"""

from __future__ import annotations

from typing import overload

from lxml import etree, html
from lxml.html import HtmlElement

from harrow.common.exceptions import (
    HTMLStructuralAssumptionException,
    PageParseException,
)


def parse_html(
    content: bytes | str, request_url: str = ""
) -> CheckedHtmlElement:
    """Parse page content into a CheckedHtmlElement.

    Args:
        content: Raw page bytes (or text).
        request_url: URL of the page, for error context.

    Returns:
        The document root wrapped in a CheckedHtmlElement.

    Raises:
        PageParseException: If the content is empty or not parseable as HTML.
    """
    length = len(content)
    if not content or not content.strip():
        raise PageParseException(request_url, "document is empty", length)
    try:
        root = html.fromstring(content)
    except (etree.ParserError, ValueError) as e:
        raise PageParseException(request_url, str(e), length) from e
    return CheckedHtmlElement(root, request_url)


class CheckedHtmlElement:
    """Wrapper around HtmlElement with validated selectors.

    checked_xpath() validates the number of results against expected
    min/max counts and raises HTMLStructuralAssumptionException with clear
    context when the page does not match. Pass ``min_count=0`` for optional
    queries whose absence is not an error.
    """

    def __init__(self, element: HtmlElement, request_url: str = "") -> None:
        """Initialize the checked element wrapper.

        Args:
            element: The lxml HtmlElement to wrap.
            request_url: Optional URL for error context.
        """
        self._element = element
        self._request_url = request_url

    @property
    def element(self) -> HtmlElement:
        return self._element

    @overload
    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
        *,
        type: type[str],
    ) -> list[str]: ...

    @overload
    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[CheckedHtmlElement]: ...

    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
        *,
        type: type[str] | None = None,
    ) -> list[CheckedHtmlElement] | list[str]:
        """Execute XPath query with count validation.

        Args:
            xpath: XPath expression to execute.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of results expected (default: 1).
            max_count: Maximum number of results expected (None = unlimited).
            type: Pass `str` to return only string results (text/attributes).
                If omitted, returns only CheckedHtmlElements.

        Returns:
            List of matching results filtered by type.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match expectations.

        Example::

            tree = parse_html(content, url)
            rows = tree.checked_xpath("//tr", "rows", min_count=0)
            hrefs = tree.checked_xpath("//a/@href", "links", type=str)
        """
        results = self._element.xpath(xpath)

        matched: list
        if type is str:
            matched = [str(r) for r in results if isinstance(r, str)]
        else:
            matched = [
                CheckedHtmlElement(r, self._request_url)
                for r in results
                if isinstance(r, HtmlElement)
            ]

        actual_count = len(matched)
        if actual_count < min_count or (
            max_count is not None and actual_count > max_count
        ):
            raise HTMLStructuralAssumptionException(
                selector=xpath,
                description=description,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=actual_count,
                request_url=self._request_url,
            )
        return matched

    def first_text(self, xpath: str, description: str) -> str | None:
        """Return the text content of the first match, or None."""
        found = self.checked_xpath(xpath, description, min_count=0)
        if not found:
            return None
        return found[0].text_content()

    def __getattr__(self, name: str):
        """Delegate all other attributes to the wrapped element."""
        return getattr(self._element, name)

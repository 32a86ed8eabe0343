"""Data types shared by the fetcher, harvester and extractor.

These are small frozen dataclasses: the request parameters handed to the
request manager, and the ephemeral parsed form of one listing page.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from harrow.common.exceptions import ConfigurationException

# Desktop browser identification sent with every listing/detail/image fetch.
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:76.0) "
    "Gecko/20100101 Firefox/76.0"
)

DEFAULT_HEADERS: dict[str, str] = {"User-Agent": DEFAULT_USER_AGENT}


class HttpMethod(Enum):
    """HTTP methods supported by the fetcher."""

    GET = "GET"
    POST = "POST"

    @classmethod
    def coerce(cls, method: HttpMethod | str) -> HttpMethod:
        """Return ``method`` as an HttpMethod.

        Raises:
            ConfigurationException: If the method is not GET or POST.
        """
        if isinstance(method, cls):
            return method
        try:
            return cls(str(method).upper())
        except ValueError:
            raise ConfigurationException(
                f"unsupported HTTP method [{method}]", option="method"
            ) from None


@dataclass(frozen=True)
class HTTPRequestParams:
    """Parameters for one HTTP request.

    :param method: ``GET`` or ``POST``.
    :param url: Absolute URL for the request.
    :param data: (optional) Raw request body.
    :param headers: (optional) HTTP headers to send with the request.
    """

    method: HttpMethod
    url: str
    data: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ListingPage:
    """One parsed page of the paginated listing.

    Attributes:
        url: The URL the page was fetched from.
        links: Detail-page URLs in document order (duplicates kept).
        next_url: Target of the "next page" control, or None on the last page.
    """

    url: str
    links: tuple[str, ...] = ()
    next_url: str | None = None

    @property
    def is_last(self) -> bool:
        return self.next_url is None

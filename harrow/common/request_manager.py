"""Request manager for fetching raw resources over HTTP.

This module provides SyncRequestManager, which encapsulates the httpx client
and turns a URL, method, body and headers into the response bytes.

The request manager is responsible for:
- Maintaining the HTTP client (httpx.Client)
- Rejecting unsupported methods before touching the network
- Converting transport failures and error statuses into FetchException
  subclasses (transient for network errors, timeouts and 5xx; permanent for
  4xx and malformed URLs)

It never retries. Retry policy belongs to the caller.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from harrow.common.exceptions import (
    FetchException,
    HTMLResponseAssumptionException,
    HTTPClientErrorException,
    NetworkException,
    RequestTimeoutException,
)
from harrow.data_types import DEFAULT_HEADERS, HttpMethod, HTTPRequestParams

logger = logging.getLogger(__name__)


class SyncRequestManager:
    """Manages HTTP requests for the sequential pipeline.

    Example::

        with SyncRequestManager(timeout=30.0) as manager:
            content = manager.fetch("https://example.com/list")
    """

    def __init__(
        self,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
        accept_error_status: bool = False,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the request manager.

        Args:
            timeout: Request timeout in seconds. None means no timeout (default).
            headers: Default headers sent with every request. Defaults to the
                desktop browser User-Agent.
            accept_error_status: If True, bodies of 4xx/5xx responses are
                returned like any other. If False (default), such responses
                raise HTMLResponseAssumptionException (5xx) or
                HTTPClientErrorException (4xx).
            transport: Optional httpx transport, mainly for tests.
        """
        self.timeout = timeout
        self.headers = dict(DEFAULT_HEADERS if headers is None else headers)
        self.accept_error_status = accept_error_status
        self._client = httpx.Client(
            timeout=timeout, follow_redirects=True, transport=transport
        )

    def close(self) -> None:
        """Close the HTTP client and release resources."""
        self._client.close()

    def __enter__(self) -> SyncRequestManager:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit - closes the client."""
        self.close()

    def fetch(
        self,
        url: str,
        method: HttpMethod | str = HttpMethod.GET,
        body: bytes | str = b"",
        headers: dict[str, str] | None = None,
    ) -> bytes:
        """Fetch ``url`` and return the response body.

        Args:
            url: Absolute URL to fetch.
            method: ``GET`` or ``POST``.
            body: Request body; strings are UTF-8 encoded.
            headers: Extra headers, merged over the manager defaults.

        Returns:
            The raw response bytes.

        Raises:
            ConfigurationException: If the method is not GET or POST.
            FetchException: On transport failure or an error status.
        """
        http_method = HttpMethod.coerce(method)
        if isinstance(body, str):
            body = body.encode("utf-8")
        merged = dict(self.headers)
        if headers:
            merged.update(headers)
        return self.resolve_request(
            HTTPRequestParams(
                method=http_method, url=url, data=body, headers=merged
            )
        )

    def resolve_request(self, params: HTTPRequestParams) -> bytes:
        """Perform the request described by ``params``.

        Args:
            params: The request parameters. URL should be absolute.

        Returns:
            The raw response bytes.

        Raises:
            RequestTimeoutException: If the request times out.
            NetworkException: On any other transport failure.
            FetchException: If the URL cannot be requested at all.
            HTMLResponseAssumptionException: On a 5xx status.
            HTTPClientErrorException: On a 4xx status.

        Status errors are not raised when accept_error_status is set.
        """
        logger.debug(f"{params.method.value} {params.url}")
        try:
            http_response = self._client.request(
                method=params.method.value,
                url=params.url,
                headers=params.headers,
                content=params.data or None,
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutException(
                url=params.url, timeout_seconds=self.timeout, cause=e
            ) from e
        except (httpx.UnsupportedProtocol, httpx.InvalidURL) as e:
            raise FetchException(params.url, e) from e
        except httpx.HTTPError as e:
            raise NetworkException(params.url, e) from e

        status_code = http_response.status_code
        if status_code >= 400 and not self.accept_error_status:
            error_class = (
                HTMLResponseAssumptionException
                if status_code >= 500
                else HTTPClientErrorException
            )
            raise error_class(
                status_code=status_code,
                expected_codes=[200],
                url=params.url,
            )

        return http_response.content

"""Exception types for harvest errors.

This module defines the exception hierarchy used across the pipeline:

- ConfigurationException: bad settings, raised before any network activity.
- FetchException and its subclasses: a resource could not be retrieved.
  Those that are also TransientException (network failures, timeouts, 5xx
  responses) may be retried by a calling policy layer; 4xx responses are
  not.
- ScraperAssumptionException and its subclasses: markup that could not be
  parsed or did not have the expected shape.
- ListingUnavailableException / EmptyListingException: run-level failures.
"""

from typing import Any


class ConfigurationException(Exception):
    """Raised when the run is configured in a way that cannot work.

    Examples are an unsupported HTTP method or a missing output path. These
    are always fatal and are raised before any request is made.
    """

    def __init__(self, message: str, option: str | None = None) -> None:
        self.message = message
        self.option = option
        super().__init__(message)


class ScraperAssumptionException(Exception):
    """Base class for scraper assumption violations.

    The extractor and harvester assume a particular markup shape. When a page
    cannot be parsed at all, or a checked query returns an unexpected number
    of results, one of the subclasses below is raised with enough context to
    diagnose the change.
    """

    def __init__(
        self,
        message: str,
        request_url: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable description of the assumption violation.
            request_url: The URL of the page that triggered this error.
            context: Optional dict of additional context (selector, counts, etc).
        """
        self.message = message
        self.request_url = request_url
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with context.

        Returns:
            Formatted error message string.
        """
        parts = [self.message]
        parts.append(f"URL: {self.request_url}")

        if self.context:
            parts.append("Context:")
            for key, value in self.context.items():
                parts.append(f"  {key}: {value}")

        return "\n".join(parts)


class PageParseException(ScraperAssumptionException):
    """Raised when fetched bytes cannot be parsed as an HTML document."""

    def __init__(
        self, request_url: str, reason: str, content_length: int = 0
    ) -> None:
        super().__init__(
            f"Could not parse page as HTML: {reason}",
            request_url,
            {"content_length": content_length},
        )


class HTMLStructuralAssumptionException(ScraperAssumptionException):
    """Raised when HTML structure doesn't match expectations.

    This exception is raised when an XPath query returns a different number
    of results than expected. This usually indicates that the website's HTML
    structure has changed.

    Attributes:
        selector: The XPath selector that was used.
        description: What was being selected.
        expected_min: Minimum number of results expected.
        expected_max: Maximum number of results expected (None = unlimited).
        actual_count: Number of results found.
    """

    def __init__(
        self,
        selector: str,
        description: str,
        expected_min: int,
        expected_max: int | None,
        actual_count: int,
        request_url: str,
    ) -> None:
        self.selector = selector
        self.description = description
        self.expected_min = expected_min
        self.expected_max = expected_max
        self.actual_count = actual_count

        if expected_max is None:
            expected_str = f"at least {expected_min}"
        elif expected_min == expected_max:
            expected_str = f"exactly {expected_min}"
        else:
            expected_str = f"between {expected_min} and {expected_max}"

        message = (
            f"HTML structure mismatch: Expected {expected_str} "
            f"results for '{description}', but found {actual_count}"
        )

        context = {
            "selector": selector,
            "expected_min": expected_min,
            "expected_max": expected_max
            if expected_max is not None
            else "unlimited",
            "actual_count": actual_count,
        }

        super().__init__(message, request_url, context)


# =============================================================================
# Fetch exceptions
# =============================================================================


class TransientException(Exception):
    """Base class for transient errors that might resolve on retry.

    Transient exceptions represent temporary failures like network issues,
    server errors or timeouts. The fetch layer never retries on its own;
    retry policy belongs to the caller (see harrow.common.retry).
    """

    pass


class FetchException(Exception):
    """Raised when a resource could not be retrieved.

    Callers skip the resource (or stop a listing) on any FetchException.
    Only subclasses that are also TransientException are worth retrying.

    Attributes:
        url: The URL that failed.
        cause: The underlying exception, if any.
        message: Human-readable error message.
    """

    def __init__(
        self,
        url: str,
        cause: BaseException | None = None,
        message: str | None = None,
    ) -> None:
        self.url = url
        self.cause = cause
        if message is None:
            message = f"Error fetching {url}: {cause}"
        self.message = message
        super().__init__(self.message)


class NetworkException(FetchException, TransientException):
    """Raised when the transport fails (connection refused, reset, ...)."""


class UnexpectedStatusException(FetchException):
    """Base class for responses with an unexpected HTTP status code.

    Attributes:
        status_code: The actual HTTP status code received.
        expected_codes: List of status codes that were expected.
    """

    def __init__(
        self,
        status_code: int,
        expected_codes: list[int],
        url: str,
    ) -> None:
        self.status_code = status_code
        self.expected_codes = expected_codes

        expected_str = ", ".join(str(code) for code in expected_codes)
        super().__init__(
            url,
            message=(
                f"HTTP {status_code} from {url} "
                f"(expected one of: {expected_str})"
            ),
        )


class HTMLResponseAssumptionException(
    UnexpectedStatusException, TransientException
):
    """Raised on a 5xx response; the server may recover."""


class HTTPClientErrorException(UnexpectedStatusException):
    """Raised on a 4xx response. Asking again will not help."""


class RequestTimeoutException(FetchException, TransientException):
    """Raised when a request times out.

    Attributes:
        timeout_seconds: The timeout duration in seconds, if one was set.
    """

    def __init__(
        self,
        url: str,
        timeout_seconds: float | None,
        cause: BaseException | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(
            url,
            cause,
            message=f"Request to {url} timed out after {timeout_seconds}s",
        )


# =============================================================================
# Run-level exceptions
# =============================================================================


class ListingUnavailableException(Exception):
    """Raised when the first listing page cannot be fetched or parsed.

    Without page one there is no listing at all, so the run is aborted.
    """

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Cannot load first listing page {url}: {reason}")


class EmptyListingException(Exception):
    """Raised when a run finds no entries to extract."""

    def __init__(self, start_url: str) -> None:
        self.start_url = start_url
        super().__init__(f"No entries for scan at {start_url}")

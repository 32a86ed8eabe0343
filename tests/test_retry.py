"""Tests for RetryPolicy backoff behavior."""

import pytest

from harrow.common.exceptions import (
    FetchException,
    HTMLResponseAssumptionException,
    HTTPClientErrorException,
    NetworkException,
    PageParseException,
)
from harrow.common.retry import RetryPolicy


class FlakyFetch:
    """Fails a fixed number of times, then returns bytes."""

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0

    def __call__(self, url: str) -> bytes:
        self.calls += 1
        if self.calls <= self.failures:
            raise NetworkException(url, message=f"failure {self.calls}")
        return b"ok"


@pytest.fixture
def sleeps():
    return []


class TestRetryPolicy:
    """Tests for RetryPolicy.call() and wrap()."""

    def test_no_retries_by_default(self, sleeps):
        """The default policy shall not retry."""
        fetch = FlakyFetch(failures=1)
        policy = RetryPolicy(sleep=sleeps.append)

        with pytest.raises(FetchException):
            policy.call(lambda: fetch("http://a/1"))
        assert fetch.calls == 1
        assert sleeps == []

    def test_wrap_without_retries_returns_same_callable(self):
        """wrap shall be a no-op when retries is zero."""
        fetch = FlakyFetch(failures=0)
        assert RetryPolicy().wrap(fetch) is fetch

    def test_succeeds_after_transient_failures(self, sleeps):
        """Transient failures shall be retried with exponential delays."""
        fetch = FlakyFetch(failures=2)
        policy = RetryPolicy(retries=3, base_delay=1.0, sleep=sleeps.append)

        assert policy.wrap(fetch)("http://a/1") == b"ok"
        assert fetch.calls == 3
        assert sleeps == [1.0, 2.0]

    def test_retries_exhausted_reraises(self, sleeps):
        """After the last retry the failure shall propagate."""
        fetch = FlakyFetch(failures=10)
        policy = RetryPolicy(retries=2, base_delay=0.5, sleep=sleeps.append)

        with pytest.raises(FetchException) as exc_info:
            policy.wrap(fetch)("http://a/1")
        assert fetch.calls == 3
        assert sleeps == [0.5, 1.0]
        assert "failure 3" in str(exc_info.value)

    def test_delay_is_capped(self):
        """A single delay shall not exceed a quarter of max_backoff."""
        policy = RetryPolicy(base_delay=1.0, max_backoff=8.0)
        assert [policy.delay_for(n) for n in range(4)] == [1.0, 2.0, 2.0, 2.0]

    def test_cumulative_backoff_limit(self, sleeps):
        """Retrying shall stop once total backoff would exceed max_backoff."""
        fetch = FlakyFetch(failures=100)
        policy = RetryPolicy(
            retries=50, base_delay=1.0, max_backoff=8.0, sleep=sleeps.append
        )

        with pytest.raises(FetchException):
            policy.wrap(fetch)("http://a/1")
        assert sum(sleeps) <= 8.0
        assert sleeps == [1.0, 2.0, 2.0, 2.0]
        assert fetch.calls == 5

    def test_non_transient_errors_are_not_retried(self, sleeps):
        """Parse failures shall propagate immediately."""
        calls = []

        def parse():
            calls.append(1)
            raise PageParseException("http://a/1", "bad markup")

        policy = RetryPolicy(retries=3, sleep=sleeps.append)
        with pytest.raises(PageParseException):
            policy.call(parse, "http://a/1")
        assert len(calls) == 1
        assert sleeps == []

    def test_client_errors_are_not_retried(self, sleeps):
        """A 4xx response shall be fetched once and re-raised."""
        calls = []

        def fetch(url):
            calls.append(url)
            raise HTTPClientErrorException(404, [200], url)

        policy = RetryPolicy(retries=3, sleep=sleeps.append)
        with pytest.raises(HTTPClientErrorException):
            policy.wrap(fetch)("http://a/gone")
        assert calls == ["http://a/gone"]
        assert sleeps == []

    def test_server_errors_are_retried(self, sleeps):
        """A 5xx response shall be retried like other transient errors."""
        calls = []

        def fetch(url):
            calls.append(url)
            if len(calls) < 3:
                raise HTMLResponseAssumptionException(503, [200], url)
            return b"ok"

        policy = RetryPolicy(retries=3, sleep=sleeps.append)
        assert policy.wrap(fetch)("http://a/busy") == b"ok"
        assert len(calls) == 3
        assert sleeps == [1.0, 2.0]

"""Test utilities shared by the harvest tests."""

from collections.abc import Callable
from typing import Any


def collect_results() -> tuple[Callable[[Any], None], list[Any]]:
    """Create a callback that collects results in a list.

    Pass the callback to the driver's on_data parameter and check the
    results list after running.

    Returns:
        A tuple of (callback_function, results_list).

    Example:
        callback, results = collect_results()
        driver = HarvestDriver(config, on_data=callback)
        driver.run()
        assert len(results) > 0
    """
    results: list[Any] = []

    def callback(data: Any) -> None:
        results.append(data)

    return callback, results


def collect_errors() -> tuple[
    Callable[[str, Exception], None], list[tuple[str, Exception]]
]:
    """Create an on_entry_error callback that records (url, error) pairs."""
    errors: list[tuple[str, Exception]] = []

    def callback(url: str, error: Exception) -> None:
        errors.append((url, error))

    return callback, errors


class CountingFetch:
    """Fetch stand-in that serves canned bytes and counts calls.

    URLs mapped to an exception instance raise it instead.
    """

    def __init__(self, responses: dict[str, bytes | Exception]) -> None:
        self.responses = responses
        self.calls: list[str] = []

    def __call__(self, url: str) -> bytes:
        self.calls.append(url)
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response

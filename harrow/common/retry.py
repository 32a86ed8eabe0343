"""Bounded retry with exponential backoff for transient fetch failures.

The request manager never retries by itself. RetryPolicy is the calling
policy layer that may wrap any fetch callable::

    policy = RetryPolicy(retries=3, base_delay=1.0, max_backoff=60.0)
    content = policy.call(lambda: manager.fetch(url), url)

The delay before retry ``n`` (0-based) is::

    delay = base_delay * 2^n

Individual delays are capped at max_backoff / 4 so that no single wait
dominates. When the cumulative backoff would exceed max_backoff the last
exception is re-raised.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from harrow.common.exceptions import TransientException

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """Retry transient failures a bounded number of times.

    Attributes:
        retries: Maximum number of retries after the first attempt.
        base_delay: Base delay in seconds for the backoff formula.
        max_backoff: Maximum cumulative backoff in seconds.
        sleep: Sleep function, replaceable in tests.
    """

    retries: int = 0
    base_delay: float = 1.0
    max_backoff: float = 60.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def delay_for(self, attempt: int) -> float:
        """Return the capped delay before retry number ``attempt``."""
        return min(self.base_delay * (2**attempt), self.max_backoff / 4)

    def call(self, fn: Callable[[], T], url: str = "") -> T:
        """Call ``fn``, retrying on TransientException.

        Args:
            fn: The zero-argument callable to run.
            url: URL for log messages.

        Returns:
            Whatever ``fn`` returns.

        Raises:
            TransientException: The last failure once retries are exhausted.
        """
        cumulative = 0.0
        attempt = 0
        while True:
            try:
                return fn()
            except TransientException as e:
                if attempt >= self.retries:
                    raise
                delay = self.delay_for(attempt)
                if cumulative + delay > self.max_backoff:
                    logger.warning(
                        f"Giving up on {url} after {attempt + 1} attempts "
                        f"({cumulative + delay:.1f}s > {self.max_backoff:.1f}s)"
                    )
                    raise
                cumulative += delay
                logger.info(
                    f"Retry #{attempt + 1} for {url} in {delay:.1f}s: {e}"
                )
                self.sleep(delay)
                attempt += 1

    def wrap(self, fn: Callable[..., T]) -> Callable[..., T]:
        """Return ``fn`` wrapped so each call goes through this policy."""
        if self.retries <= 0:
            return fn

        def wrapped(url: str, *args, **kwargs) -> T:
            return self.call(lambda: fn(url, *args, **kwargs), url)

        return wrapped

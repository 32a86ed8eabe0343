"""Run configuration.

HarvestConfig is built once at process start (usually by the CLI) and passed
to the driver, which hands the relevant pieces to each component. Nothing
reads global state.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from harrow.common.exceptions import ConfigurationException

DEFAULT_START_URL = (
    "https://www.fbi.gov/wanted/kidnap/@@castle.cms.querylisting/querylisting-1"
)
DEFAULT_OUTPUT_PATH = "output/output.csv"
DEFAULT_CACHE_DIR = "output/cache"


@dataclass(frozen=True)
class HarvestConfig:
    """Settings for one harvest run.

    Attributes:
        start_url: First page of the listing.
        output_path: CSV destination. Required for export.
        cache_dir: Directory for cached blobs; empty disables caching.
        timeout: Request timeout in seconds; None leaves it unbounded.
        retries: Retries per fetch for transient failures (0 = none).
        retry_base_delay: Base delay in seconds for exponential backoff.
        max_backoff: Maximum cumulative backoff per fetch, in seconds.
        accept_error_status: Treat 4xx/5xx bodies as successful fetches.
    """

    start_url: str = DEFAULT_START_URL
    output_path: str | None = DEFAULT_OUTPUT_PATH
    cache_dir: str | None = DEFAULT_CACHE_DIR
    timeout: float | None = None
    retries: int = 0
    retry_base_delay: float = 1.0
    max_backoff: float = 60.0
    accept_error_status: bool = False

    @property
    def cache_enabled(self) -> bool:
        return bool(self.cache_dir)

    @property
    def cache_path(self) -> Path | None:
        return Path(self.cache_dir) if self.cache_dir else None

    def validate(self) -> None:
        """Check settings before any network activity.

        Raises:
            ConfigurationException: On the first invalid setting.
        """
        if not self.start_url:
            raise ConfigurationException(
                "Start URL is not specified", option="start_url"
            )
        if not self.output_path:
            raise ConfigurationException(
                "Output file is not specified, skipping result generation",
                option="output_path",
            )
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationException(
                f"Timeout must be positive, got {self.timeout}",
                option="timeout",
            )
        if self.retries < 0:
            raise ConfigurationException(
                f"Retries must be >= 0, got {self.retries}", option="retries"
            )

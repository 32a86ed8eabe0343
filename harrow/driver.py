"""Sequential driver for a full harvest run.

The driver wires the components together and runs them strictly in order:

1. Validate the configuration (before any network activity).
2. Load the cached URL list, or harvest the listing and store the list
   (only when the harvest reached the last page).
3. Extract each detail URL, one at a time, in discovery order.
4. Export whatever succeeded.

Listing-level failures abort the run. Entry-level fetch and parse failures
only drop that entry; the run still completes and exports.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from harrow.common.cache import ByteCache
from harrow.common.exceptions import (
    EmptyListingException,
    FetchException,
    PageParseException,
)
from harrow.common.request_manager import SyncRequestManager
from harrow.common.retry import RetryPolicy
from harrow.config import HarvestConfig
from harrow.exporter import write_csv
from harrow.extractor import EntryExtractor
from harrow.harvester import ListingHarvester
from harrow.models import WantedRecord

logger = logging.getLogger(__name__)


def log_entry_error(url: str, error: Exception) -> None:
    """Default callback for entries that could not be extracted."""
    logger.error(
        f"Skipping entry {url}: {error}",
        extra={"url": url, "error_type": type(error).__name__},
    )


class HarvestDriver:
    """Runs harvest, extraction and export for one configuration.

    Example usage::

        config = HarvestConfig(output_path="out.csv", cache_dir="cache")
        records = HarvestDriver(config).run()
    """

    def __init__(
        self,
        config: HarvestConfig,
        request_manager: SyncRequestManager | None = None,
        cache: ByteCache | None = None,
        on_data: Callable[[WantedRecord], None] | None = None,
        on_entry_error: Callable[[str, Exception], None] | None = None,
        on_run_start: Callable[[str], None] | None = None,
        on_run_complete: Callable[[str, Exception | None], None]
        | None = None,
    ) -> None:
        """Initialize the driver.

        Args:
            config: The run configuration.
            request_manager: SyncRequestManager to fetch with. If None, one is
                created from the config and closed when the run ends.
            cache: ByteCache to use. If None, one is created for
                config.cache_path (disabled when that is None).
            on_data: Optional callback invoked with each extracted record.
            on_entry_error: Optional callback invoked with the URL and
                exception of each skipped entry. Defaults to logging it.
            on_run_start: Optional callback invoked with the start URL.
            on_run_complete: Optional callback invoked with the status
                ("completed" | "error") and the error, if any.
        """
        self.config = config

        if request_manager is not None:
            self.request_manager = request_manager
            self._owns_request_manager = False
        else:
            self.request_manager = SyncRequestManager(
                timeout=config.timeout,
                accept_error_status=config.accept_error_status,
            )
            self._owns_request_manager = True

        if cache is not None:
            self.cache = cache
        else:
            self.cache = ByteCache(config.cache_path)
            if not config.cache_enabled:
                logger.info("Caching disabled, every fetch goes to network")
        self.retry_policy = RetryPolicy(
            retries=config.retries,
            base_delay=config.retry_base_delay,
            max_backoff=config.max_backoff,
        )
        fetch = self.retry_policy.wrap(self.request_manager.fetch)
        self.harvester = ListingHarvester(fetch)
        self.extractor = EntryExtractor(self.cache, fetch)

        self.on_data = on_data
        self.on_entry_error = on_entry_error or log_entry_error
        self.on_run_start = on_run_start
        self.on_run_complete = on_run_complete

        self.records: list[WantedRecord] = []
        self.output_path: Path | None = None

    def collect_urls(self) -> list[str]:
        """Return the detail URLs, from the URL-list cache when present.

        Raises:
            ListingUnavailableException: If the first listing page fails.
            EmptyListingException: If no URLs were found.
        """
        urls = self.cache.load_url_list()
        if urls is not None:
            logger.info(
                f"Using cached URL list ({len(urls)} entries) from "
                f"{self.cache.url_list_path}"
            )
        else:
            urls = self.harvester.harvest(self.config.start_url)
            if urls and not self.harvester.complete:
                logger.warning(
                    f"Listing harvest was cut short; not storing the "
                    f"partial list of {len(urls)} URLs",
                    extra={"url": self.config.start_url},
                )
            elif urls:
                self.cache.store_url_list(urls)

        if not urls:
            raise EmptyListingException(self.config.start_url)
        logger.info(f"Total items found: {len(urls)}")
        return urls

    def extract_all(self, urls: list[str]) -> list[WantedRecord]:
        """Extract each URL in order, skipping entries that fail."""
        records: list[WantedRecord] = []
        for index, url in enumerate(urls, start=1):
            logger.info(f"Downloading {index}/{len(urls)}: {url}")
            try:
                record = self.extractor.extract(url)
            except (FetchException, PageParseException) as e:
                self.on_entry_error(url, e)
                continue
            records.append(record)
            if self.on_data:
                self.on_data(record)
        return records

    def run(self) -> list[WantedRecord]:
        """Run the whole pipeline and return the exported records.

        Raises:
            ConfigurationException: If the configuration is invalid.
            ListingUnavailableException: If the first listing page fails.
            EmptyListingException: If no URLs were found.
        """
        if self.on_run_start:
            self.on_run_start(self.config.start_url)

        status = "completed"
        error: Exception | None = None

        try:
            self.config.validate()
            urls = self.collect_urls()
            self.records = self.extract_all(urls)
            self.output_path = write_csv(
                self.records, self.config.output_path
            )
            logger.info(
                f"Extracted {len(self.records)} of {len(urls)} entries"
            )
            return self.records
        except Exception as e:
            status = "error"
            error = e
            raise
        finally:
            if self._owns_request_manager:
                self.request_manager.close()

            if self.on_run_complete:
                self.on_run_complete(status, error)

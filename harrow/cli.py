"""harrow CLI: run a harvest or extract a single entry.

Usage:
    harrow run                                  # Harvest with the defaults
    harrow run --output out.csv --cache-dir ""  # No caching
    harrow run --retries 3 --timeout 30 -v
    harrow extract URL                          # Print one record as JSON
"""

from __future__ import annotations

import json
import logging

import click

from harrow.common.cache import ByteCache
from harrow.common.exceptions import (
    ConfigurationException,
    EmptyListingException,
    FetchException,
    ListingUnavailableException,
    PageParseException,
)
from harrow.common.request_manager import SyncRequestManager
from harrow.config import (
    DEFAULT_CACHE_DIR,
    DEFAULT_OUTPUT_PATH,
    DEFAULT_START_URL,
    HarvestConfig,
)


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)


@click.group()
@click.version_option(package_name="harrow")
def cli() -> None:
    """harrow: harvest a paginated listing into a CSV table."""


@cli.command()
@click.option(
    "--start-url",
    default=DEFAULT_START_URL,
    show_default=True,
    help="First page of the listing.",
)
@click.option(
    "--output",
    "output_path",
    default=DEFAULT_OUTPUT_PATH,
    show_default=True,
    help="Destination CSV file.",
)
@click.option(
    "--cache-dir",
    default=DEFAULT_CACHE_DIR,
    show_default=True,
    help="Directory for cached pages and images. Empty disables caching.",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Request timeout in seconds (default: none).",
)
@click.option(
    "--retries",
    type=int,
    default=0,
    show_default=True,
    help="Retries per fetch for transient failures.",
)
@click.option(
    "--accept-error-status",
    is_flag=True,
    help="Treat 4xx/5xx response bodies as successful fetches.",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def run(
    start_url: str,
    output_path: str,
    cache_dir: str,
    timeout: float | None,
    retries: int,
    accept_error_status: bool,
    verbose: bool,
) -> None:
    """Harvest the listing, extract every entry and write the CSV."""
    from harrow.driver import HarvestDriver

    _configure_logging(verbose)

    config = HarvestConfig(
        start_url=start_url,
        output_path=output_path,
        cache_dir=cache_dir,
        timeout=timeout,
        retries=retries,
        accept_error_status=accept_error_status,
    )

    driver = HarvestDriver(config)
    try:
        records = driver.run()
    except (
        ConfigurationException,
        ListingUnavailableException,
        EmptyListingException,
    ) as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Wrote {len(records)} records to {driver.output_path}")


@cli.command()
@click.argument("url")
@click.option(
    "--cache-dir",
    default=DEFAULT_CACHE_DIR,
    show_default=True,
    help="Directory for cached pages and images. Empty disables caching.",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Request timeout in seconds (default: none).",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def extract(
    url: str, cache_dir: str, timeout: float | None, verbose: bool
) -> None:
    """Extract a single detail page and print it as JSON.

    \b
    Examples:
        harrow extract https://www.fbi.gov/wanted/kidnap/someone
    """
    from harrow.extractor import EntryExtractor

    _configure_logging(verbose)

    with SyncRequestManager(timeout=timeout) as manager:
        extractor = EntryExtractor(ByteCache(cache_dir), manager.fetch)
        try:
            record = extractor.extract(url)
        except (FetchException, PageParseException) as e:
            raise click.ClickException(str(e)) from e

    click.echo(
        json.dumps(
            record.model_dump(by_alias=True, exclude_none=True), indent=2
        )
    )


def main() -> None:
    """Entry point for the ``harrow`` console script."""
    cli()

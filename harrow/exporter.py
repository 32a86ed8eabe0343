"""CSV export of extracted records.

The exporter is a fixed-column projection: a header row, then one row per
record with each cell set to the record's value for that column (empty
string when unset). Column order never depends on which fields a record
happens to populate.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from harrow.common.exceptions import ConfigurationException
from harrow.models import WantedRecord

logger = logging.getLogger(__name__)

CSV_COLUMNS: tuple[str, ...] = (
    "Id",
    "Name",
    "Sex",
    "DateOfBirth",
    "PlaceOfBirth",
    "Nationality",
    "PlaceOfCase",
    "DateOfCase",
    "Details",
    "Height",
    "Hair",
    "Eyes",
    "Source",
)

# Every record field, for callers that want the images and extras too.
FULL_COLUMNS: tuple[str, ...] = WantedRecord.columns()


def record_row(
    record: WantedRecord, columns: Sequence[str] = CSV_COLUMNS
) -> list[str]:
    """Project a record onto ``columns``; unset values become ``""``."""
    row = []
    for column in columns:
        value = record.get(column)
        row.append("" if value is None else str(value))
    return row


def write_csv(
    records: Iterable[WantedRecord],
    output_path: Path | str | None,
    columns: Sequence[str] = CSV_COLUMNS,
) -> Path:
    """Write records as CSV with a header row.

    Args:
        records: Records in output order.
        output_path: Destination file; parent directories are created.
        columns: Column names, in order.

    Returns:
        The path written.

    Raises:
        ConfigurationException: If no output path is configured.
    """
    if not output_path:
        raise ConfigurationException(
            "Output file is not specified, skipping result generation",
            option="output_path",
        )

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(columns)
        for record in records:
            writer.writerow(record_row(record, columns))
            count += 1

    logger.info(f"Wrote {count} records to {path}")
    return path

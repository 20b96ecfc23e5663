"""
logonaudit Record Export

Serialize LogonRecords to JSON or CSV.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime, timezone
from typing import IO, Any, Dict, Iterable, List, Sequence

import structlog

from logonaudit.core.types import LogonRecord

logger = structlog.get_logger()

CSV_FIELDS = [
    "DataSourceHost",
    "Timestamp",
    "UserDomain",
    "Username",
    "LogonType",
    "SourceIpAddress",
    "ComputerName",
]


def records_to_dicts(records: Iterable[LogonRecord]) -> List[Dict[str, Any]]:
    return [record.to_dict() for record in records]


def records_to_json(records: Sequence[LogonRecord], indent: int = 2) -> str:
    """Render records as a JSON array."""
    return json.dumps(records_to_dicts(records), indent=indent, default=str)


def write_csv(records: Iterable[LogonRecord], stream: IO[str]) -> int:
    """
    Write records as CSV to an open text stream.

    Returns:
        Number of rows written
    """
    writer = csv.DictWriter(stream, fieldnames=CSV_FIELDS, extrasaction="ignore")
    writer.writeheader()

    count = 0
    for record in records:
        writer.writerow(record.to_dict())
        count += 1
    return count


def records_to_csv(records: Iterable[LogonRecord]) -> str:
    buffer = io.StringIO()
    write_csv(records, buffer)
    return buffer.getvalue()


def export_json(records: Sequence[LogonRecord], filepath: str) -> None:
    """
    Export records to a JSON file.

    Args:
        records: Records to export
        filepath: Path to output JSON file
    """
    data = {
        "export_timestamp": datetime.now(timezone.utc).isoformat(),
        "total_records": len(records),
        "records": records_to_dicts(records),
    }

    with open(filepath, "w") as f:
        json.dump(data, f, indent=2, default=str)

    logger.info("exported_json", filepath=filepath, count=len(records))


def export_csv(records: Sequence[LogonRecord], filepath: str) -> None:
    """
    Export records to a CSV file.

    Args:
        records: Records to export
        filepath: Path to output CSV file
    """
    with open(filepath, "w", newline="") as f:
        count = write_csv(records, f)

    logger.info("exported_csv", filepath=filepath, count=count)

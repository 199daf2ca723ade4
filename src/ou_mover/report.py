"""
CSV report of a completed batch.

The report starts with PARAMETER rows describing the run, followed by one
row per work item in processing order.
"""

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Union

from . import __version__
from .types import BatchResult, ReportEntry, ReportStatus

logger = logging.getLogger(__name__)

REPORT_COLUMNS = [
    "timestamp",
    "identifier",
    "status",
    "distinguished_name",
    "destination",
    "message",
]

END_PARAMETERS = "--- END PARAMETERS ---"


def build_report_entries(
    result: BatchResult,
    destination: str,
    server: str,
) -> List[ReportEntry]:
    """Build PARAMETER rows followed by one entry per item."""
    timestamp = datetime.now().astimezone().isoformat(timespec="seconds")
    parameter = ReportStatus.PARAMETER.value

    entries = [
        ReportEntry(timestamp, "", parameter, "", "", f"version={__version__}"),
        ReportEntry(timestamp, "", parameter, "", "", f"server={server}"),
        ReportEntry(timestamp, "", parameter, "", "", f"destination={destination}"),
        ReportEntry(timestamp, "", parameter, "", "", f"log_path={result.log_path}"),
        ReportEntry(timestamp, "", parameter, "", "", END_PARAMETERS),
    ]

    for item in result.results:
        entries.append(ReportEntry(
            timestamp=timestamp,
            identifier=item.identifier,
            status=ReportStatus.from_outcome(item.outcome).value,
            distinguished_name=item.dn or "",
            destination=destination,
            message=item.message,
        ))

    return entries


def write_report(
    result: BatchResult,
    report_path: Union[str, Path],
    destination: str,
    server: str,
) -> Path:
    """
    Write the CSV report, creating the parent directory if needed.

    Returns:
        The path written

    Raises:
        OSError: If the report cannot be written
    """
    path = Path(report_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    entries = build_report_entries(result, destination, server)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(REPORT_COLUMNS)
        for entry in entries:
            writer.writerow([
                entry.timestamp,
                entry.identifier,
                entry.status,
                entry.distinguished_name,
                entry.destination,
                entry.message,
            ])

    logger.info(f"Wrote report with {len(result.results)} rows to {path}")
    return path

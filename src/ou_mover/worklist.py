"""
Work list loader for extracting directory object identifiers.

This module is responsible for:
- Reading plain text lists (one identifier per line)
- Reading Column A of XLSX workbooks using openpyxl
- Trimming whitespace and skipping blank entries with a WARNING audit entry
- Rejecting identifiers that contain line breaks
- Keeping duplicates and the original order
- Failing with LoadError when nothing usable is found
"""

import locale
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

import openpyxl

from .audit import AuditLog
from .errors import LoadError
from .types import WorkItem

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xlsm"}


def _read_text_lines(path: Path) -> List[str]:
    """Read a text file as UTF-8, falling back to the host default encoding."""
    try:
        data = path.read_bytes()
    except OSError as e:
        raise LoadError(f"Cannot read input file '{path}': {e}") from e

    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.debug(f"{path} is not UTF-8, trying the default encoding")
        try:
            text = data.decode(locale.getpreferredencoding(False))
        except UnicodeDecodeError as e:
            raise LoadError(f"Cannot decode input file '{path}': {e}") from e

    # Only \n and \r\n end a line; other Unicode breaks stay inside it.
    lines = [line.rstrip("\r") for line in text.split("\n")]
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _read_excel_column(path: Path) -> List[Optional[str]]:
    """Read Column A of the active sheet; empty cells come back as None."""
    try:
        # data_only=True to get values instead of formulas
        workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
    except Exception as e:
        raise LoadError(f"Failed to open Excel file '{path}': {e}") from e

    try:
        worksheet = workbook.active
        logger.debug(f"Using active sheet: {worksheet.title}")
        return [
            None if row[0] is None else str(row[0])
            for row in worksheet.iter_rows(min_col=1, max_col=1, values_only=True)
        ]
    finally:
        workbook.close()


def _filter_entries(
    entries: Iterable[Optional[str]],
    audit: AuditLog,
    source: Path,
) -> Tuple[List[WorkItem], int]:
    items: List[WorkItem] = []
    skipped = 0

    for line_no, raw in enumerate(entries, start=1):
        identifier = (raw or "").strip()
        if not identifier:
            skipped += 1
            audit.warning(f"Skipping blank line {line_no} in {source.name}")
            continue
        if identifier.splitlines() != [identifier]:
            skipped += 1
            audit.warning(
                f"Skipping line {line_no} in {source.name}: "
                f"identifier contains a line break ({identifier!r})"
            )
            continue
        items.append(identifier)

    return items, skipped


def load_work_items(
    input_path: Union[str, Path],
    audit: AuditLog,
) -> List[WorkItem]:
    """
    Load directory object identifiers from a work list file.

    Text files hold one identifier per line. XLSX files are read from
    Column A of the active sheet, converting every value to a string so
    leading zeros survive. Whitespace is trimmed; blank entries are skipped
    with one WARNING per entry. Duplicates are kept in their original
    positions.

    Args:
        input_path: Path to the text or XLSX file
        audit: Audit log receiving the warnings

    Returns:
        List of identifiers in file order

    Raises:
        LoadError: If the file is missing, unreadable or holds no identifiers
    """
    path = Path(input_path)

    if not path.exists():
        raise LoadError(f"Input file not found: {path}")

    if not path.is_file():
        raise LoadError(f"Input path is not a file: {path}")

    logger.info(f"Loading work list from: {path}")

    if path.suffix.lower() in EXCEL_SUFFIXES:
        entries = _read_excel_column(path)
    else:
        entries = _read_text_lines(path)

    items, skipped = _filter_entries(entries, audit, path)

    if not items:
        raise LoadError(
            f"Input file '{path}' contains no identifiers "
            f"({len(entries)} lines, none usable)"
        )

    audit.info(f"Loaded {len(items)} identifiers from {path} (skipped {skipped})")
    return items

"""
CSV export and import.

WHAT: Renders org records as CSV text for download, and parses uploaded CSV
into header-keyed rows.

WHY: Exports and imports go through the same two functions, so every file
the API writes uses one dialect (comma separated, minimal quoting, header
row first) and every upload is read the same way.

HOW: Header names are matched case-insensitively on import. Rows whose
column count differs from the header are reported by line number and
skipped; blank lines are ignored.
"""

import csv
import io
from decimal import Decimal
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Sequence, Tuple

from fastapi import Response

from bizledger.core.exceptions import ValidationError

EXPORT_PAGE_SIZE = 500


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def rows_to_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Write a header row followed by ``rows``; None becomes an empty cell."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(value) for value in row])
    return buffer.getvalue()


def csv_download(text: str, filename: str) -> Response:
    return Response(
        content=text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


async def fetch_all(
    fetch: Callable[..., Awaitable[List[Any]]], page_size: int = EXPORT_PAGE_SIZE
) -> List[Any]:
    """
    Drain a paginated DAO listing.

    ``fetch`` is called with ``skip`` and ``limit`` keyword arguments until it
    returns a short page.
    """
    records: List[Any] = []
    skip = 0
    while True:
        page = await fetch(skip=skip, limit=page_size)
        records.extend(page)
        if len(page) < page_size:
            return records
        skip += page_size


def parse_csv(
    text: str, required: Sequence[str]
) -> Tuple[List[Tuple[int, Dict[str, str]]], List[str]]:
    """
    Parse CSV text into (line_number, row) pairs keyed by lowercased header.

    Args:
        text: Whole file contents (a leading BOM is dropped)
        required: Header names that must be present

    Returns:
        (rows, errors), errors naming the skipped lines

    Raises:
        ValidationError: no header, a required column missing, or no data lines
    """
    text = text.lstrip("\ufeff")
    reader = csv.reader(io.StringIO(text))

    header: List[str] = []
    for line in reader:
        if any(cell.strip() for cell in line):
            header = [cell.strip().lower() for cell in line]
            break

    if not header:
        raise ValidationError(message="CSV file has no header row")

    missing = [name for name in required if name.lower() not in header]
    if missing:
        raise ValidationError(
            message=f"Missing required columns: {', '.join(missing)}", missing=missing
        )

    rows: List[Tuple[int, Dict[str, str]]] = []
    errors: List[str] = []
    for line in reader:
        if not any(cell.strip() for cell in line):
            continue
        if len(line) != len(header):
            errors.append(
                f"Line {reader.line_num}: expected {len(header)} columns, got {len(line)}"
            )
            continue
        rows.append((reader.line_num, {h: cell.strip() for h, cell in zip(header, line)}))

    if not rows and not errors:
        raise ValidationError(message="CSV file has no data rows")
    return rows, errors

"""
app/parsing/csv_parser.py

Decode uploaded CSV bytes into a header-first list of trimmed string tuples.
"""

from __future__ import annotations

import csv
import io
import logging

from app.domain.csv_upload import ParsedRow
from app.domain.errors import ParseError

logger = logging.getLogger(__name__)


def _is_blank_line(cells: list[str]) -> bool:
    return not cells or (len(cells) == 1 and not cells[0].strip())


def parse_csv(content: bytes) -> list[ParsedRow]:
    """
    Parse CSV bytes into rows of trimmed cells.

    Row 0 is the header. Blank lines are skipped and ragged rows are kept
    as-is, so a short row simply has fewer cells than the header. A UTF-8
    byte-order mark is tolerated.
    """

    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ParseError(f"CSV file is not valid UTF-8: {exc}") from exc

    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    rows: list[ParsedRow] = []
    try:
        for cells in reader:
            if _is_blank_line(cells):
                continue
            rows.append(tuple(cell.strip() for cell in cells))
    except csv.Error as exc:
        raise ParseError(f"CSV parsing failed at line {reader.line_num}: {exc}") from exc

    logger.debug("Parsed CSV payload rows=%s bytes=%s", len(rows), len(content))
    return rows

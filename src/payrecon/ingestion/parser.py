"""Delimited-text parsing for pasted or uploaded TBMS exports."""

from __future__ import annotations

import logging
import re
from typing import Callable

from payrecon.core.types import RawRow
from payrecon.models.records import ParsedTable

logger = logging.getLogger(__name__)

# Used when the header line has no tab: runs of 2+ spaces (aligned console
# output) or commas.
_FALLBACK_DELIMITER = re.compile(r"\s{2,}|,")


def _clean_cell(cell: str) -> str:
    return cell.strip().strip('"').strip()


def detect_splitter(header_line: str) -> Callable[[str], list[str]]:
    """Pick one delimiter from the header line; it is applied to every line."""
    if "\t" in header_line:
        return lambda line: line.split("\t")
    return _FALLBACK_DELIMITER.split


def parse_delimited_text(text: str) -> ParsedTable:
    """Parse raw text into headers and ``{header: value}`` rows.

    Blank lines are dropped. Fewer than two remaining lines (header plus one
    data line) yields an empty table rather than an error. Rows shorter than
    the header are padded with empty strings; surplus cells are ignored.
    """
    lines = [line for line in (text or "").splitlines() if line.strip()]
    if len(lines) < 2:
        logger.info("Nothing parsed: %d non-blank line(s)", len(lines))
        return ParsedTable()

    split = detect_splitter(lines[0])
    headers = [_clean_cell(cell) for cell in split(lines[0])]

    rows: list[RawRow] = []
    for line in lines[1:]:
        values = [_clean_cell(cell) for cell in split(line)]
        rows.append({
            header: values[idx] if idx < len(values) else ""
            for idx, header in enumerate(headers)
        })

    logger.debug("Parsed %d row(s) with %d column(s)", len(rows), len(headers))
    return ParsedTable(headers=headers, rows=rows)

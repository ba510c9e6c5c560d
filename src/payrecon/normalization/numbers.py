"""Lenient number parsing for export cells.

Anything that does not start with a number becomes 0. This is deliberate:
an absent cell and an unparsable one are treated alike, and downstream
payment validation rejects zero amounts.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

# Currency symbols/codes and spacing that TBMS and spreadsheet exports put around amounts.
IGNORE_CHARS: tuple[str, ...] = ("$", "€", "£", "₺", " ", " ")
_CURRENCY_CODES = re.compile(r"\b(?:USD|EUR|GBP|TRY|TL)\b", re.IGNORECASE)
_THOUSANDS = re.compile(r"^[-+]?\d{1,3}(,\d{3})+(\.\d+)?")
_LEADING_NUMBER = re.compile(r"^[-+]?(\d+(\.\d*)?|\.\d+)")


def _clean(value: object) -> str:
    text = "" if value is None else str(value)
    text = _CURRENCY_CODES.sub("", text)
    for char in IGNORE_CHARS:
        text = text.replace(char, "")
    if _THOUSANDS.match(text):
        text = text.replace(",", "")
    return text


def parse_decimal(value: object) -> Decimal:
    """``"1,234.50 USD"`` -> 1234.50, ``"12abc"`` -> 12, ``"n/a"`` -> 0."""
    match = _LEADING_NUMBER.match(_clean(value))
    if not match:
        return Decimal("0")
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return Decimal("0")


def parse_int(value: object) -> int:
    """Integer part of the leading number; ``"1000.7"`` -> 1000."""
    return int(parse_decimal(value))

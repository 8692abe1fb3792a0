"""
Locale-aware value parsers shared by every ingestion path.

Pure functions, ZERO I/O.  Both parsers return None on failure instead of
raising: an unparsable value makes one row unusable, never the batch.

Amounts follow the Brazilian convention used by spreadsheets and the ERP:
``.`` groups thousands, ``,`` separates decimals, and a trailing ``-`` marks
a negative value ("1.234,56-" is -1234.56).
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

# Spreadsheet serial day 0 (Excel/Lotus 1900 system, leap-year bug included)
SPREADSHEET_EPOCH = date(1899, 12, 30)

_NON_NUMERIC = re.compile(r"[^\d.,\-]")
_THOUSANDS_DOT = re.compile(r"\.(?=\d{3}(?:\D|$))")
_DAY_MONTH_YEAR = re.compile(
    r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{2,4})(?:[ T]\d{1,2}:\d{2}(?::\d{2})?)?$"
)


def parse_amount(raw: Any) -> Decimal | None:
    """
    Parse a monetary amount into a Decimal.

    Numbers are accepted directly (floats through their shortest repr, so
    0.1 stays 0.1).  Strings lose every symbol except digits, ``.``, ``,``
    and ``-``; a dot is a thousands separator only when exactly three digits
    follow it; the first comma becomes the decimal point.
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, Decimal):
        return raw if raw.is_finite() else None
    if isinstance(raw, int):
        return Decimal(raw)
    if isinstance(raw, float):
        value = Decimal(repr(raw))
        return value if value.is_finite() else None

    text = str(raw).strip()
    if not text:
        return None

    cleaned = _NON_NUMERIC.sub("", text)
    cleaned = _THOUSANDS_DOT.sub("", cleaned)
    cleaned = cleaned.replace(",", ".", 1)
    if cleaned.endswith("-"):
        cleaned = "-" + cleaned[:-1]

    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def parse_date(raw: Any) -> date | None:
    """
    Parse a calendar date.

    Accepts native dates/datetimes, spreadsheet serial numbers (day
    granularity from 1899-12-30), ISO strings, and ``D/M/Y`` or ``D-M-Y``
    strings with 2- or 4-digit years (2-digit years land in the 2000s).
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw

    if isinstance(raw, (int, float, Decimal)):
        if not raw:
            return None
        try:
            return SPREADSHEET_EPOCH + timedelta(days=int(raw))
        except (OverflowError, ValueError):
            return None

    text = str(raw).strip()
    if not text:
        return None

    iso = _parse_iso(text)
    if iso is not None:
        return iso

    match = _DAY_MONTH_YEAR.match(text)
    if match is None:
        return None
    day, month, year = match.groups()
    full_year = int(f"20{year}") if len(year) == 2 else int(year)
    try:
        return date(full_year, int(month), int(day))
    except ValueError:
        return None


def _parse_iso(text: str) -> date | None:
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None

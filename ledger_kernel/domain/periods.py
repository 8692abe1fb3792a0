"""
Reporting periods: accounting basis, grouping granularity and month bounds.

Pure functions, ZERO I/O.
"""

from __future__ import annotations

import re
from datetime import date
from enum import Enum

from ledger_kernel.exceptions import InvalidPeriodError

_MONTH_PATTERN = re.compile(r"^\d{4}-\d{2}$")


class DateBasis(str, Enum):
    """Which date drives period grouping."""

    CASH = "cash"  # Transaction.date
    ACCRUAL = "accrual"  # Transaction.accrual_date, falling back to date


class Granularity(str, Enum):
    """Period width for grouped reports."""

    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


def parse_month(value: str) -> date:
    """
    Parse a ``YYYY-MM`` bound into the first day of that month.

    Raises:
        InvalidPeriodError: if the value does not match YYYY-MM or names
            a month outside 01-12.
    """
    if not isinstance(value, str) or not _MONTH_PATTERN.match(value):
        raise InvalidPeriodError(str(value))
    year, month = int(value[:4]), int(value[5:])
    if not 1 <= month <= 12:
        raise InvalidPeriodError(value)
    return date(year, month, 1)


def month_after(first_day: date) -> date:
    """First day of the month following ``first_day``."""
    if first_day.month == 12:
        return date(first_day.year + 1, 1, 1)
    return date(first_day.year, first_day.month + 1, 1)


def truncate_period(year: int, month: int, granularity: Granularity) -> date:
    """Start date of the period containing (year, month)."""
    if granularity == Granularity.YEAR:
        return date(year, 1, 1)
    if granularity == Granularity.QUARTER:
        return date(year, ((month - 1) // 3) * 3 + 1, 1)
    return date(year, month, 1)

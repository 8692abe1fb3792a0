"""
ledger_kernel.domain -- Pure types, parsers and the clock.

ZERO I/O (SystemClock excepted).
"""

from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.dtos import InsertOutcome, SkippedRow, TransactionDraft, json_safe
from ledger_kernel.domain.parsers import parse_amount, parse_date
from ledger_kernel.domain.periods import (
    DateBasis,
    Granularity,
    month_after,
    parse_month,
    truncate_period,
)

__all__ = [
    "Clock",
    "DateBasis",
    "Granularity",
    "DeterministicClock",
    "SystemClock",
    "InsertOutcome",
    "SkippedRow",
    "TransactionDraft",
    "json_safe",
    "month_after",
    "parse_amount",
    "parse_date",
    "parse_month",
    "truncate_period",
]

"""
Pure report reductions.

ZERO I/O.  ZERO side effects.  Same rows in, same summary out.
"""

from __future__ import annotations

import dataclasses
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable

from ledger_kernel.selectors.ledger_selector import AggregateRow

from ledger_reporting.models import UNKNOWN_TYPE, AggregationSummary


def period_key(period: date) -> str:
    return period.isoformat()


def build_summary(rows: Iterable[AggregateRow]) -> AggregationSummary:
    """Reduce report rows into grand, per-type, per-period and per-account totals."""
    total = Decimal("0")
    by_type: dict[str, Decimal] = {}
    by_period: dict[str, Decimal] = {}
    by_account: dict[str, Decimal] = {}

    for row in rows:
        total += row.total
        type_key = row.account_type or UNKNOWN_TYPE
        by_type[type_key] = by_type.get(type_key, Decimal("0")) + row.total
        p_key = period_key(row.period)
        by_period[p_key] = by_period.get(p_key, Decimal("0")) + row.total
        by_account[row.credit] = by_account.get(row.credit, Decimal("0")) + row.total

    return AggregationSummary(
        total=total,
        by_type=by_type,
        by_period=by_period,
        by_account=by_account,
    )


def render_to_dict(obj: object) -> dict | list | str | int | float | bool | None:
    """
    Convert a report dataclass to plain JSON-ready values.

    Decimal becomes str (preserving precision), date becomes ISO text,
    Enum becomes its value, tuples become lists.
    """
    if obj is None:
        return None
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)

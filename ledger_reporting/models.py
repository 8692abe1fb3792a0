"""
Aggregation report models (``ledger_reporting.models``).

Responsibility
--------------
Frozen value objects for the grouped profit-and-loss report: the query a
caller submits, the summary reduced from the rows, the echo of the
resolved parameters, and the filter catalog offered to report screens.

Architecture position
---------------------
**Reporting layer** -- pure data definitions with ZERO I/O.  Rows
themselves are ``AggregateRow`` from the kernel ledger selector.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from ledger_kernel.selectors.ledger_selector import AccountView, AggregateRow

UNKNOWN_TYPE = "UNKNOWN"


@dataclass(frozen=True)
class AggregationQuery:
    """
    A report request as received from a caller.

    Values are raw; ``AggregationService`` validates them.  ``from_month`` and
    ``to_month`` are inclusive ``YYYY-MM`` bounds.  Empty sequences and None
    mean "no restriction".
    """

    tenant_id: str
    from_month: str
    to_month: str
    basis: str = "accrual"
    granularity: str = "month"
    currency: str | None = None
    accounts: tuple[str, ...] = ()
    account_types: tuple[str, ...] = ()
    origins: tuple[str, ...] = ()
    min_amount: Decimal | int | str | None = None
    max_amount: Decimal | int | str | None = None
    search: str | None = None


@dataclass(frozen=True)
class AggregationSummary:
    total: Decimal
    by_type: dict[str, Decimal] = field(default_factory=dict)
    by_period: dict[str, Decimal] = field(default_factory=dict)
    by_account: dict[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class AggregationMeta:
    """Resolved parameters, echoed for reproducibility."""

    tenant_id: str
    from_month: str
    to_month: str
    basis: str
    granularity: str
    currency: str


@dataclass(frozen=True)
class AggregationReport:
    rows: tuple[AggregateRow, ...]
    summary: AggregationSummary
    meta: AggregationMeta

    def to_dict(self) -> dict[str, Any]:
        from ledger_reporting.summaries import render_to_dict

        return render_to_dict(self)


@dataclass(frozen=True)
class FilterCatalog:
    """Values a report screen may offer as filters for one tenant."""

    accounts: tuple[AccountView, ...]
    account_types: tuple[str, ...]
    origins: tuple[str, ...]
    currencies: tuple[str, ...]
    bases: tuple[str, ...]
    granularities: tuple[str, ...]

"""
AggregationService -- grouped profit-and-loss reports over the ledger.

Responsibility
--------------
Validates an ``AggregationQuery``, runs it through the kernel
``LedgerSelector`` and reduces the rows into a summary.  Read-only: nothing
is flushed or committed.

Failure modes
-------------
* Malformed ``YYYY-MM`` bound  -> ``InvalidPeriodError`` before any query.
* Unknown basis, granularity or account type  -> ``InvalidQueryError``.
* Non-numeric amount bound or missing tenant  -> ``InputError``.
* Selector failure  -> exception propagates (read-only, no rollback).
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Iterable

from sqlalchemy.orm import Session

from ledger_config.schema import LedgerConfig
from ledger_kernel.domain.periods import (
    DateBasis,
    Granularity,
    month_after,
    parse_month,
)
from ledger_kernel.exceptions import InputError, InvalidQueryError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.managed_account import AccountType
from ledger_kernel.selectors.ledger_selector import AggregateFilters, LedgerSelector

from ledger_reporting.models import (
    AggregationMeta,
    AggregationQuery,
    AggregationReport,
    FilterCatalog,
)
from ledger_reporting.summaries import build_summary

logger = get_logger("reporting.aggregation")

_ACCOUNT_TYPES = tuple(t.value for t in AccountType)


def _choice(field_name: str, value: str, enum_cls):
    allowed = tuple(m.value for m in enum_cls)
    normalized = str(value).strip().lower()
    if normalized not in allowed:
        raise InvalidQueryError(field_name, value, allowed)
    return enum_cls(normalized)


def _amount(field_name: str, value) -> Decimal | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise InputError(f"Invalid {field_name} {value!r}") from exc
    if not amount.is_finite():
        raise InputError(f"Invalid {field_name} {value!r}")
    return amount


def _clean(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(v.strip() for v in values if v and v.strip())


class AggregationService:
    """Read-only report service; constructor takes a session and optional config."""

    def __init__(self, session: Session, config: LedgerConfig | None = None):
        self._config = config or LedgerConfig.with_defaults()
        self._ledger = LedgerSelector(session)

    def run_aggregation(self, query: AggregationQuery) -> AggregationReport:
        """Rows per (period, credit account), their summary and the resolved parameters."""
        if not query.tenant_id:
            raise InputError("tenant_id is required")

        start = parse_month(query.from_month)
        end = parse_month(query.to_month)
        basis = _choice("basis", query.basis, DateBasis)
        granularity = _choice("granularity", query.granularity, Granularity)

        account_types = tuple(
            _choice("account_type", t, AccountType).value for t in _clean(query.account_types)
        )
        filters = AggregateFilters(
            date_from=start,
            date_to=month_after(end),
            credit_codes=_clean(query.accounts),
            account_types=account_types,
            origins=_clean(query.origins),
            min_amount=_amount("min_amount", query.min_amount),
            max_amount=_amount("max_amount", query.max_amount),
            search=query.search.strip() if query.search and query.search.strip() else None,
        )

        rows = tuple(self._ledger.query_aggregates(query.tenant_id, basis, filters, granularity))
        report = AggregationReport(
            rows=rows,
            summary=build_summary(rows),
            meta=AggregationMeta(
                tenant_id=query.tenant_id,
                from_month=query.from_month,
                to_month=query.to_month,
                basis=basis.value,
                granularity=granularity.value,
                currency=query.currency or self._config.accounts.currency,
            ),
        )

        logger.info(
            "aggregation_completed",
            extra={
                "tenant_id": query.tenant_id,
                "from_month": query.from_month,
                "to_month": query.to_month,
                "basis": basis.value,
                "granularity": granularity.value,
                "row_count": len(rows),
            },
        )
        return report

    def get_filters(self, tenant_id: str) -> FilterCatalog:
        if not tenant_id:
            raise InputError("tenant_id is required")
        return FilterCatalog(
            accounts=tuple(self._ledger.list_managed_accounts(tenant_id)),
            account_types=_ACCOUNT_TYPES,
            origins=tuple(self._ledger.list_distinct(tenant_id, "origin")),
            currencies=tuple(self._ledger.list_distinct(tenant_id, "currency")),
            bases=tuple(b.value for b in DateBasis),
            granularities=tuple(g.value for g in Granularity),
        )

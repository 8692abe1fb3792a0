"""
Module: ledger_kernel.selectors.ledger_selector
Responsibility: Read-only ledger queries: reconciliation key lookup, grouped
    aggregates for profit-and-loss reports, and distinct-value catalogs.
Architecture position: Kernel > Selectors.  May import from models/ and
    domain/.  MUST NOT import from services/ or outer packages.

Portability:
    Filtering and summing happen in SQL; buckets are (year, month) via
    ``extract`` so the same statement runs on PostgreSQL and SQLite.  Months
    are folded into quarters/years here, in Python.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from sqlalchemy import and_, extract, func, or_, select
from sqlalchemy.orm import Session

from ledger_kernel.domain.periods import DateBasis, Granularity, truncate_period
from ledger_kernel.models.managed_account import ManagedAccount
from ledger_kernel.models.transaction import Transaction
from ledger_kernel.selectors.base import BaseSelector

# Keeps IN (...) lists under driver parameter limits
_REF_CHUNK = 500

_DISTINCT_COLUMNS = {
    "origin": Transaction.origin,
    "currency": Transaction.currency,
    "credit": Transaction.credit,
    "debit": Transaction.debit,
}


@dataclass(frozen=True)
class AggregateFilters:
    """
    Row filters for an aggregate query.  Empty tuples and None mean
    "no restriction".  ``date_to`` is exclusive.
    """

    date_from: date
    date_to: date
    credit_codes: tuple[str, ...] = ()
    account_types: tuple[str, ...] = ()
    origins: tuple[str, ...] = ()
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None
    search: str | None = None


@dataclass(frozen=True)
class AggregateRow:
    """One (period, credit account) bucket."""

    period: date
    credit: str
    account_name: str
    account_type: str | None
    total: Decimal
    entries: int


@dataclass(frozen=True)
class AccountView:
    """Managed account as exposed to report filters."""

    code: str
    name: str
    type: str


class LedgerSelector(BaseSelector):
    """
    Selector for ledger reads.

    Guarantees:
        - Every query is scoped to one tenant.
        - Totals are Decimal, never float.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def find_transaction_refs(
        self,
        tenant_id: str,
        origins: Iterable[str],
        refs: Iterable[str],
    ) -> set[tuple[str, str]]:
        """Return the (origin, source_ref) pairs that already exist."""
        origin_list = sorted(set(origins))
        ref_list = sorted(set(refs))
        if not origin_list or not ref_list:
            return set()

        found: set[tuple[str, str]] = set()
        for start in range(0, len(ref_list), _REF_CHUNK):
            chunk = ref_list[start:start + _REF_CHUNK]
            stmt = select(Transaction.origin, Transaction.source_ref).where(
                Transaction.tenant_id == tenant_id,
                Transaction.origin.in_(origin_list),
                Transaction.source_ref.in_(chunk),
            )
            found.update((origin, ref) for origin, ref in self.session.execute(stmt))
        return found

    def count_by_identity(self, tenant_id: str, origin: str, source_ref: str) -> int:
        """Number of rows carrying one reconciliation key (0 or 1 when healthy)."""
        stmt = select(func.count(Transaction.id)).where(
            Transaction.tenant_id == tenant_id,
            Transaction.origin == origin,
            Transaction.source_ref == source_ref,
        )
        return self.session.execute(stmt).scalar_one()

    def query_aggregates(
        self,
        tenant_id: str,
        basis: DateBasis,
        filters: AggregateFilters,
        granularity: Granularity,
    ) -> list[AggregateRow]:
        """
        Sum transactions per (period, credit account).

        Rows are ordered by period ascending, then credit code ascending.
        Account name defaults to the raw credit code when the code has no
        ManagedAccount.
        """
        if basis == DateBasis.CASH:
            date_expr = Transaction.date
        else:
            date_expr = func.coalesce(Transaction.accrual_date, Transaction.date)

        year_expr = extract("year", date_expr)
        month_expr = extract("month", date_expr)
        name_expr = func.coalesce(ManagedAccount.name, Transaction.credit)

        stmt = (
            select(
                year_expr.label("year"),
                month_expr.label("month"),
                Transaction.credit,
                name_expr.label("account_name"),
                ManagedAccount.type,
                func.sum(Transaction.amount).label("total"),
                func.count(Transaction.id).label("entries"),
            )
            .select_from(Transaction)
            .outerjoin(
                ManagedAccount,
                and_(
                    ManagedAccount.code == Transaction.credit,
                    ManagedAccount.tenant_id == Transaction.tenant_id,
                ),
            )
            .where(*self._conditions(tenant_id, date_expr, filters))
            .group_by(year_expr, month_expr, Transaction.credit, name_expr, ManagedAccount.type)
        )

        buckets: dict[tuple[date, str], list] = {}
        for year, month, credit, name, acc_type, total, entries in self.session.execute(stmt):
            period = truncate_period(int(year), int(month), granularity)
            key = (period, credit)
            bucket = buckets.setdefault(key, [name, acc_type, Decimal("0"), 0])
            bucket[2] += Decimal(total or 0)
            bucket[3] += int(entries)

        return [
            AggregateRow(
                period=period,
                credit=credit,
                account_name=name,
                account_type=str(acc_type) if acc_type is not None else None,
                total=total,
                entries=entries,
            )
            for (period, credit), (name, acc_type, total, entries) in sorted(buckets.items())
        ]

    def list_distinct(self, tenant_id: str, column: str) -> list[str]:
        """Distinct non-null values of one transaction column, sorted."""
        col = _DISTINCT_COLUMNS.get(column)
        if col is None:
            raise ValueError(f"Unsupported distinct column {column!r}")
        stmt = (
            select(col)
            .where(Transaction.tenant_id == tenant_id, col.is_not(None))
            .distinct()
            .order_by(col)
        )
        return [value for value in self.session.execute(stmt).scalars() if value]

    def list_managed_accounts(self, tenant_id: str) -> list[AccountView]:
        """The tenant's chart of accounts ordered by code."""
        stmt = (
            select(ManagedAccount.code, ManagedAccount.name, ManagedAccount.type)
            .where(ManagedAccount.tenant_id == tenant_id)
            .order_by(ManagedAccount.code)
        )
        return [
            AccountView(code=code, name=name, type=str(acc_type))
            for code, name, acc_type in self.session.execute(stmt)
        ]

    @staticmethod
    def _conditions(tenant_id: str, date_expr, filters: AggregateFilters) -> list:
        conditions = [
            Transaction.tenant_id == tenant_id,
            date_expr >= filters.date_from,
            date_expr < filters.date_to,
        ]
        if filters.credit_codes:
            conditions.append(Transaction.credit.in_(filters.credit_codes))
        if filters.account_types:
            conditions.append(ManagedAccount.type.in_(filters.account_types))
        if filters.origins:
            conditions.append(Transaction.origin.in_(filters.origins))
        if filters.min_amount is not None:
            conditions.append(Transaction.amount >= filters.min_amount)
        if filters.max_amount is not None:
            conditions.append(Transaction.amount <= filters.max_amount)
        term = (filters.search or "").strip()
        if term:
            pattern = f"%{term}%"
            conditions.append(
                or_(
                    ManagedAccount.name.ilike(pattern),
                    Transaction.credit.ilike(pattern),
                    Transaction.debit.ilike(pattern),
                    Transaction.memo.ilike(pattern),
                    func.coalesce(Transaction.source_ref, "").ilike(pattern),
                )
            )
        return conditions

"""
LedgerStore -- the single write path for ledger rows.

Responsibility:
    Implements the ledger store contract consumed by the reconciliation
    engine: batch insert, update by reconciliation key, existing-key lookup,
    grouped aggregates and distinct-value catalogs.  Reads delegate to
    LedgerSelector.

Architecture position:
    Kernel > Services.  Flushes within the caller's transaction and never
    commits or rolls back the outer transaction; savepoints are used to
    isolate failed inserts.

Failure modes:
    - A uniqueness conflict on (tenant_id, origin, source_ref) during
      ``insert_transactions`` never propagates.  The bulk attempt is rolled
      back to its savepoint, rows are retried one by one, and conflicting
      keys are reported in ``InsertOutcome.conflicts``.
"""

from typing import Any, Iterable, Sequence

from sqlalchemy import insert, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_kernel.domain.dtos import InsertOutcome, TransactionDraft
from ledger_kernel.domain.periods import DateBasis, Granularity
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.transaction import Transaction
from ledger_kernel.selectors.ledger_selector import (
    AggregateFilters,
    AggregateRow,
    LedgerSelector,
)

logger = get_logger("services.ledger_store")

# Only these columns may be overwritten by a reconciliation update
_UPDATABLE = frozenset(
    {"date", "accrual_date", "debit", "credit", "amount", "currency", "memo", "meta"}
)


class LedgerStore:
    """
    Ledger store bound to one session.

    Contract:
        Every method is tenant-scoped.  Writes call ``session.flush()``
        (directly or through a savepoint) so the caller's transaction
        owns the final commit.
    """

    def __init__(self, session: Session):
        self._session = session
        self._selector = LedgerSelector(session)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def insert_transactions(self, batch: Sequence[TransactionDraft]) -> InsertOutcome:
        """Insert drafts as new rows, tolerating reconciliation-key conflicts."""
        if not batch:
            return InsertOutcome(inserted=0)

        rows = [draft.row_values() for draft in batch]
        try:
            with self._session.begin_nested():
                self._session.execute(insert(Transaction), rows)
            return InsertOutcome(inserted=len(rows))
        except IntegrityError:
            logger.info(
                "ledger_bulk_insert_conflict",
                extra={"batch_size": len(rows)},
            )

        inserted = 0
        conflicts: list[tuple[str, str]] = []
        for draft, values in zip(batch, rows):
            try:
                with self._session.begin_nested():
                    self._session.execute(insert(Transaction), [values])
                inserted += 1
            except IntegrityError:
                conflicts.append((draft.origin, draft.source_ref or ""))
                logger.debug(
                    "ledger_insert_conflict",
                    extra={"origin": draft.origin, "source_ref": draft.source_ref},
                )
        return InsertOutcome(inserted=inserted, conflicts=tuple(conflicts))

    def update_transactions_by_origin_ref(
        self,
        tenant_id: str,
        origin: str,
        ref: str,
        fields: dict[str, Any],
    ) -> int:
        """Overwrite the mutable fields of the row keyed by (origin, ref)."""
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")
        if not fields:
            return 0

        result = self._session.execute(
            update(Transaction)
            .where(
                Transaction.tenant_id == tenant_id,
                Transaction.origin == origin,
                Transaction.source_ref == ref,
            )
            .values(**fields)
            .execution_options(synchronize_session="fetch")
        )
        self._session.flush()
        return result.rowcount or 0

    # -------------------------------------------------------------------------
    # Reads (delegated)
    # -------------------------------------------------------------------------

    def find_transaction_refs(
        self,
        tenant_id: str,
        origins: Iterable[str],
        refs: Iterable[str],
    ) -> set[tuple[str, str]]:
        return self._selector.find_transaction_refs(tenant_id, origins, refs)

    def query_aggregates(
        self,
        tenant_id: str,
        date_expr: DateBasis,
        filters: AggregateFilters,
        group_expr: Granularity,
    ) -> list[AggregateRow]:
        """Grouped totals; ``date_expr`` picks the basis, ``group_expr`` the width."""
        return self._selector.query_aggregates(tenant_id, date_expr, filters, group_expr)

    def list_distinct(self, tenant_id: str, column: str) -> list[str]:
        return self._selector.list_distinct(tenant_id, column)

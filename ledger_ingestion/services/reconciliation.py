"""
ReconciliationEngine -- upsert drafts by (tenant_id, origin, source_ref).

Contract:
    ``reconcile(tenant_id, drafts)`` writes every draft exactly once:
      - drafts whose key already exists update that row in place
      - drafts with a new key are inserted
      - drafts without a source_ref are always inserted
    Within one batch a repeated key keeps only its last draft.

Concurrency:
    The engine takes no lock.  Entry points hold the tenant's lock from
    ``TenantLockRegistry`` around a reconcile cycle; the unique constraint
    catches whatever slips past it, and each such insert conflict is applied
    as an update and counted.

Architecture: ledger_ingestion/services.  Writes only through LedgerStore.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy.orm import Session

from ledger_kernel.domain.dtos import TransactionDraft
from ledger_kernel.logging_config import get_logger
from ledger_kernel.services.ledger_store import LedgerStore

from ledger_ingestion.domain.types import ReconciliationResult

logger = get_logger("ingestion.reconciliation")


class ReconciliationEngine:
    """Applies draft batches to the ledger without duplicating identities."""

    def __init__(self, session: Session, store: LedgerStore | None = None):
        self._store = store or LedgerStore(session)

    def reconcile(
        self,
        tenant_id: str,
        drafts: Iterable[TransactionDraft],
    ) -> ReconciliationResult:
        keyed: dict[tuple[str, str], TransactionDraft] = {}
        anonymous: list[TransactionDraft] = []
        duplicates = 0

        for draft in drafts:
            if draft.tenant_id != tenant_id:
                raise ValueError(
                    f"Draft for tenant {draft.tenant_id!r} in batch for {tenant_id!r}"
                )
            identity = draft.identity
            if identity is None:
                anonymous.append(draft)
                continue
            if identity in keyed:
                duplicates += 1
            keyed[identity] = draft

        existing = self._store.find_transaction_refs(
            tenant_id,
            origins={origin for origin, _ in keyed},
            refs={ref for _, ref in keyed},
        )

        updated = 0
        to_insert: list[TransactionDraft] = []
        for identity, draft in keyed.items():
            if identity in existing:
                updated += self._apply_update(tenant_id, draft)
            else:
                to_insert.append(draft)
        to_insert.extend(anonymous)

        outcome = self._store.insert_transactions(to_insert)

        conflicts = 0
        for identity in outcome.conflicts:
            draft = keyed.get(identity)
            if draft is None:
                continue
            conflicts += 1
            updated += self._apply_update(tenant_id, draft)

        result = ReconciliationResult(
            inserted=outcome.inserted,
            updated=updated,
            conflicts=conflicts,
            duplicates_in_batch=duplicates,
        )
        logger.info(
            "reconciliation_completed",
            extra={
                "tenant_id": tenant_id,
                "drafts": len(keyed) + len(anonymous) + duplicates,
                "inserted": result.inserted,
                "updated": result.updated,
                "conflicts": result.conflicts,
                "duplicates_in_batch": duplicates,
                "anonymous": len(anonymous),
            },
        )
        return result

    def _apply_update(self, tenant_id: str, draft: TransactionDraft) -> int:
        origin, ref = draft.identity
        count = self._store.update_transactions_by_origin_ref(
            tenant_id, origin, ref, draft.mutable_fields()
        )
        return 1 if count else 0

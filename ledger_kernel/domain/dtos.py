"""
ledger_kernel.domain.dtos -- Frozen value objects exchanged between the
ingestion paths, the reconciliation engine and the ledger store.

ZERO I/O.  Both the spreadsheet normalizer and the ERP mapper produce
``TransactionDraft``; only the reconciliation engine turns drafts into rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID


def json_safe(obj: Any) -> Any:
    """Convert values to JSON-serializable form (Decimal -> str, dates -> ISO)."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, dict):
        return {str(k): json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [json_safe(v) for v in obj]
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, float) and obj != obj:
        return None
    return obj


@dataclass(frozen=True)
class TransactionDraft:
    """
    A canonical ledger row before identity resolution.

    ``source_ref`` is the reconciliation key: drafts sharing
    (tenant_id, origin, source_ref) describe the same logical transaction.
    A None ``source_ref`` means the draft has no identity and is always
    inserted.
    """

    tenant_id: str
    date: date
    debit: str
    credit: str
    amount: Decimal
    origin: str
    currency: str = "BRL"
    accrual_date: date | None = None
    memo: str | None = None
    source_ref: str | None = None
    meta: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def identity(self) -> tuple[str, str] | None:
        """(origin, source_ref) when the draft can be reconciled."""
        if self.source_ref is None:
            return None
        return (self.origin, self.source_ref)

    def mutable_fields(self) -> dict[str, Any]:
        """Fields an update may overwrite on an existing ledger row."""
        return {
            "date": self.date,
            "accrual_date": self.accrual_date,
            "debit": self.debit,
            "credit": self.credit,
            "amount": self.amount,
            "currency": self.currency,
            "memo": self.memo,
            "meta": json_safe(self.meta),
        }

    def row_values(self) -> dict[str, Any]:
        """Full column mapping for an INSERT."""
        values = self.mutable_fields()
        values.update(
            tenant_id=self.tenant_id,
            origin=self.origin,
            source_ref=self.source_ref,
        )
        return values


@dataclass(frozen=True)
class SkippedRow:
    """A source row that produced no draft, with the operator-facing reason."""

    row_number: int
    reason: str


@dataclass(frozen=True)
class InsertOutcome:
    """Result of a best-effort batch insert."""

    inserted: int
    conflicts: tuple[tuple[str, str], ...] = ()

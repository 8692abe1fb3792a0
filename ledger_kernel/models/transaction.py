"""
Module: ledger_kernel.models.transaction
Responsibility: ORM persistence for canonical ledger rows.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - At most one row per (tenant_id, origin, source_ref) when source_ref is
      not null (uq_transaction_origin_ref).  NULL refs are distinct under both
      PostgreSQL and SQLite, so rows without identity are never constrained.
    - amount is Numeric(38, 9); signed (payables are negative).

Writes go exclusively through ledger_kernel.services.ledger_store, driven by
the reconciliation engine.
"""

import datetime as dt
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, Date, Index, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.db.types import MONEY_PRECISION, MONEY_SCALE


class Transaction(TrackedBase):
    """A single double-entry ledger row for one tenant."""

    __tablename__ = "transactions"
    __table_args__ = (
        UniqueConstraint("tenant_id", "origin", "source_ref", name="uq_transaction_origin_ref"),
        Index("idx_transaction_tenant_date", "tenant_id", "date"),
        Index("idx_transaction_tenant_credit", "tenant_id", "credit"),
    )

    tenant_id: Mapped[str] = mapped_column(String(100), nullable=False)

    # Cash-basis date
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)

    # Accrual-basis date; reports fall back to ``date`` when null
    accrual_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)

    debit: Mapped[str] = mapped_column(String(100), nullable=False)
    credit: Mapped[str] = mapped_column(String(100), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(MONEY_PRECISION, MONEY_SCALE), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="BRL")

    memo: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Source tag: "import:xlsx", "ERP:Tiny:orders", ...
    origin: Mapped[str] = mapped_column(String(100), nullable=False)

    # Stable external identifier used as the reconciliation key
    source_ref: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Original payload, kept for audit/debug
    meta: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<Transaction {self.origin}:{self.source_ref} {self.amount} {self.credit}>"

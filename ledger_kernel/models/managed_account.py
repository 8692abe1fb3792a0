"""
Module: ledger_kernel.models.managed_account
Responsibility: Per-tenant chart of accounts used to label and classify
    credit codes in aggregation reports.  Read-only for ingestion.
"""

from enum import Enum

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class AccountType(str, Enum):
    """Profit-and-loss classification of a managed account."""

    REVENUE = "revenue"
    DEDUCTION = "deduction"
    COST = "cost"
    OPEX = "opex"
    RESULT = "result"
    OTHER = "other"


class ManagedAccount(TrackedBase):
    """Chart-of-accounts entry keyed by (tenant_id, code)."""

    __tablename__ = "managed_accounts"
    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_managed_account_code"),
    )

    tenant_id: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[AccountType] = mapped_column(String(20), nullable=False)

    def __repr__(self) -> str:
        return f"<ManagedAccount {self.code}: {self.name}>"

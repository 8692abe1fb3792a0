"""
Module: ledger_kernel.models.integration_config
Responsibility: Per-tenant ERP integration settings and scheduling state.

Ownership:
    - token, modules, enabled and frequency are written by the configuration
      entrypoint (ledger_erp.config_service).
    - last_sync_at, next_sync_at and last_sync_status are written only by the
      sync scheduler (ledger_batch.services.scheduler).
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class IntegrationConfig(TrackedBase):
    """ERP integration configuration for one tenant."""

    __tablename__ = "integration_configs"
    __table_args__ = (
        UniqueConstraint("tenant_id", name="uq_integration_config_tenant"),
    )

    tenant_id: Mapped[str] = mapped_column(String(100), nullable=False)
    api_token: Mapped[str] = mapped_column(String(255), nullable=False)

    # Subset of {"orders", "invoices", "financial"}
    enabled_modules: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Null means the scheduler default (1440 minutes)
    sync_frequency_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    last_sync_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    next_sync_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # "success", "partial" or "failed" for the latest scheduled attempt
    last_sync_status: Mapped[str | None] = mapped_column(String(20), nullable=True)

    def __repr__(self) -> str:
        return f"<IntegrationConfig {self.tenant_id} enabled={self.enabled}>"

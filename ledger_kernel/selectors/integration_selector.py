"""
Module: ledger_kernel.selectors.integration_selector
Responsibility: Read-only access to per-tenant ERP integration settings.
Architecture position: Kernel > Selectors.  Returns IntegrationSnapshot DTOs
    so callers outside a session scope never hold live ORM rows.
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.models.integration_config import IntegrationConfig
from ledger_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class IntegrationSnapshot:
    """Immutable view of one IntegrationConfig row."""

    tenant_id: str
    api_token: str
    enabled_modules: tuple[str, ...]
    enabled: bool
    sync_frequency_minutes: int | None
    last_sync_at: datetime | None
    next_sync_at: datetime | None
    last_sync_status: str | None = None

    @classmethod
    def from_model(cls, model: IntegrationConfig) -> "IntegrationSnapshot":
        return cls(
            tenant_id=model.tenant_id,
            api_token=model.api_token,
            enabled_modules=tuple(model.enabled_modules or ()),
            enabled=bool(model.enabled),
            sync_frequency_minutes=model.sync_frequency_minutes,
            last_sync_at=model.last_sync_at,
            next_sync_at=model.next_sync_at,
            last_sync_status=model.last_sync_status,
        )


class IntegrationConfigSelector(BaseSelector):
    """Selector for IntegrationConfig rows."""

    def __init__(self, session: Session):
        super().__init__(session)

    def get(self, tenant_id: str) -> IntegrationSnapshot | None:
        """Configuration for one tenant, or None when never configured."""
        model = self.session.execute(
            select(IntegrationConfig).where(IntegrationConfig.tenant_id == tenant_id)
        ).scalar_one_or_none()
        return IntegrationSnapshot.from_model(model) if model is not None else None

    def enabled_configs(self) -> list[IntegrationSnapshot]:
        """Every enabled tenant configuration, ordered by tenant id."""
        models = self.session.execute(
            select(IntegrationConfig)
            .where(IntegrationConfig.enabled == True)  # noqa: E712
            .order_by(IntegrationConfig.tenant_id)
        ).scalars().all()
        return [IntegrationSnapshot.from_model(m) for m in models]

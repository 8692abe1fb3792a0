"""
IntegrationConfigService -- the configuration entrypoint for ERP syncs.

Owns token, modules, enabled flag and frequency.  Never writes
``last_sync_at`` / ``next_sync_at``; those belong to the scheduler.
Flushes; the caller owns commit/rollback.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.exceptions import InputError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.integration_config import IntegrationConfig
from ledger_kernel.selectors.integration_selector import (
    IntegrationConfigSelector,
    IntegrationSnapshot,
)

from ledger_erp.service import DEFAULT_MODULES, validate_modules

logger = get_logger("erp.config")


class IntegrationConfigService:
    def __init__(self, session: Session):
        self._session = session
        self._selector = IntegrationConfigSelector(session)

    def upsert_config(
        self,
        tenant_id: str,
        token: str,
        modules: Iterable[str] | None = None,
        enabled: bool = True,
        sync_frequency_minutes: int | None = None,
    ) -> IntegrationSnapshot:
        """Create or replace a tenant's integration settings."""
        if not token or not token.strip():
            raise InputError("API token is required")
        if sync_frequency_minutes is not None and sync_frequency_minutes <= 0:
            raise InputError("sync_frequency_minutes must be positive")
        selected = list(validate_modules(modules or DEFAULT_MODULES))
        if not selected:
            selected = list(DEFAULT_MODULES)

        model = self._session.execute(
            select(IntegrationConfig).where(IntegrationConfig.tenant_id == tenant_id)
        ).scalar_one_or_none()

        created = model is None
        if created:
            model = IntegrationConfig(tenant_id=tenant_id)
            self._session.add(model)

        model.api_token = token.strip()
        model.enabled_modules = selected
        model.enabled = enabled
        model.sync_frequency_minutes = sync_frequency_minutes
        self._session.flush()

        logger.info(
            "integration_config_saved",
            extra={
                "tenant_id": tenant_id,
                "is_new": created,
                "modules": selected,
                "enabled": enabled,
                "sync_frequency_minutes": sync_frequency_minutes,
            },
        )
        return IntegrationSnapshot.from_model(model)

    def get_status(self, tenant_id: str) -> IntegrationSnapshot | None:
        return self._selector.get(tenant_id)

    def list_enabled(self) -> list[IntegrationSnapshot]:
        return self._selector.enabled_configs()

"""
ErpSyncService -- fetch -> map -> reconcile for one tenant.

Contract:
    ``sync_tenant(tenant_id, token, modules, date_from)`` pulls every
    requested module and returns one ``ModuleSyncResult`` per module.

Failure scope:
    A module whose fetch or write fails records the error on its result and
    the remaining modules still run.  Each module's writes sit in their own
    SAVEPOINT, so a failed module leaves no partial rows behind.  The
    service flushes; the caller owns commit/rollback.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ledger_config.schema import LedgerConfig
from ledger_ingestion.services.reconciliation import ReconciliationEngine
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.exceptions import InputError, UpstreamError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.selectors.integration_selector import IntegrationConfigSelector
from ledger_kernel.services.tenant_locks import TenantLockRegistry, default_registry

from ledger_erp.client import ErpClient, SearchWindow
from ledger_erp.mapper import ErpMapper
from ledger_erp.resources import MODULE_RESOURCES, SUPPORTED_MODULES, ModuleKind

logger = get_logger("erp.sync")

DEFAULT_MODULES: tuple[str, ...] = (ModuleKind.ORDERS.value,)


@dataclass(frozen=True)
class ModuleSyncResult:
    """Outcome of one module pull.  ``persisted`` counts new ledger rows."""

    module: str
    pulled: int
    persisted: int
    updated: int = 0
    conflicts: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class TenantSyncResult:
    tenant_id: str
    synced_at: datetime
    results: tuple[ModuleSyncResult, ...]

    @property
    def status(self) -> str:
        """``success``, ``partial`` or ``failed``."""
        failures = sum(1 for r in self.results if not r.ok)
        if failures == 0:
            return "success"
        if failures == len(self.results):
            return "failed"
        return "partial"

    def to_dict(self) -> dict[str, Any]:
        return {
            "tenantId": self.tenant_id,
            "syncedAt": self.synced_at.isoformat(),
            "results": [
                {
                    "module": r.module,
                    "pulled": r.pulled,
                    "persisted": r.persisted,
                    "updated": r.updated,
                    "conflicts": r.conflicts,
                    "error": r.error,
                }
                for r in self.results
            ],
        }


def validate_modules(modules: Iterable[str]) -> tuple[str, ...]:
    """De-duplicated module list in request order; unknown names raise InputError."""
    seen: list[str] = []
    for module in modules:
        name = str(module).strip().lower()
        if name not in SUPPORTED_MODULES:
            raise InputError(
                f"Unsupported module {module!r}; expected one of {', '.join(SUPPORTED_MODULES)}"
            )
        if name not in seen:
            seen.append(name)
    return tuple(seen)


class ErpSyncService:
    """Runs ERP pulls for one session."""

    def __init__(
        self,
        session: Session,
        config: LedgerConfig | None = None,
        clock: Clock | None = None,
        client_factory: Callable[[str], ErpClient] | None = None,
        locks: TenantLockRegistry | None = None,
    ):
        self._session = session
        self._config = config or LedgerConfig.with_defaults()
        self._clock = clock or SystemClock()
        self._client_factory = client_factory or (
            lambda token: ErpClient(token, settings=self._config.erp)
        )
        self._mapper = ErpMapper(accounts=self._config.accounts, settings=self._config.erp)
        self._engine = ReconciliationEngine(session)
        self._locks = locks or default_registry

    def sync_tenant(
        self,
        tenant_id: str,
        token: str | None = None,
        modules: Iterable[str] | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> TenantSyncResult:
        """
        Pull the requested modules for one tenant.

        When ``token`` or ``modules`` is omitted it comes from the tenant's
        IntegrationConfig; modules finally default to ``["orders"]``.
        ``date_from`` bounds the update range (absent on a first sync).
        """
        requested = list(modules or ())
        if token is None or not requested:
            snapshot = IntegrationConfigSelector(self._session).get(tenant_id)
            if token is None:
                if snapshot is None:
                    raise InputError(f"No ERP integration configured for tenant {tenant_id!r}")
                token = snapshot.api_token
            if not requested and snapshot is not None:
                requested = list(snapshot.enabled_modules)
        selected = validate_modules(requested or DEFAULT_MODULES)

        window = SearchWindow(update_from=date_from, update_to=date_to)
        fallback_date = self._clock.today()

        with LogContext.bind(tenant_id=tenant_id, producer="erp:sync"):
            logger.info(
                "tenant_sync_started",
                extra={"modules": list(selected), "date_from": date_from},
            )
            client = self._client_factory(token)
            try:
                results = tuple(
                    self._sync_module(client, tenant_id, ModuleKind(m), window, fallback_date)
                    for m in selected
                )
            finally:
                client.close()

        outcome = TenantSyncResult(
            tenant_id=tenant_id,
            synced_at=self._clock.now(),
            results=results,
        )
        logger.info(
            "tenant_sync_completed",
            extra={
                "tenant_id": tenant_id,
                "status": outcome.status,
                "persisted": sum(r.persisted for r in results),
                "updated": sum(r.updated for r in results),
            },
        )
        return outcome

    def _sync_module(
        self,
        client: ErpClient,
        tenant_id: str,
        module: ModuleKind,
        window: SearchWindow,
        fallback_date: date,
    ) -> ModuleSyncResult:
        with LogContext.bind(module=module.value):
            pulled: list[dict] = []
            try:
                for resource in MODULE_RESOURCES[module]:
                    pulled.extend(client.fetch_all(resource, window))
            except UpstreamError as exc:
                logger.exception("erp_module_fetch_failed", extra={"erp_module": module.value})
                return ModuleSyncResult(module=module.value, pulled=0, persisted=0, error=str(exc))

            drafts = self._mapper.map_module(module, tenant_id, pulled, fallback_date)

            try:
                with self._locks.hold(tenant_id):
                    with self._session.begin_nested():
                        result = self._engine.reconcile(tenant_id, drafts)
            except SQLAlchemyError as exc:
                logger.exception("erp_module_persist_failed", extra={"erp_module": module.value})
                return ModuleSyncResult(
                    module=module.value,
                    pulled=len(pulled),
                    persisted=0,
                    error=f"persist failed: {exc.__class__.__name__}",
                )

            logger.info(
                "erp_module_synced",
                extra={
                    "erp_module": module.value,
                    "pulled": len(pulled),
                    "drafts": len(drafts),
                    "persisted": result.inserted,
                    "updated": result.updated,
                },
            )
            return ModuleSyncResult(
                module=module.value,
                pulled=len(pulled),
                persisted=result.inserted,
                updated=result.updated,
                conflicts=result.conflicts,
            )

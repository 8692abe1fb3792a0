"""
SyncScheduler -- In-process polling scheduler for ERP pulls.

Contract:
    Every ``tick_interval_seconds`` the scheduler loads enabled integrations,
    evaluates ``is_due()`` (pure) and runs each due tenant's pull on a
    bounded worker pool.  Every attempt, successful or not, advances the
    tenant's schedule: ``last_sync_at = now``, ``next_sync_at = now + freq``.

Architecture: ledger_batch/services.  Uses ledger_batch.domain.schedule for
    pure evaluation and ledger_erp.service for the pull itself.

Isolation:
    Each tenant runs in its own Session.  A tenant whose pull raises is
    rolled back, logged and marked ``failed``; other tenants are unaffected.
    Writes for one tenant are serialized by the tenant lock registry inside
    the sync service.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, datetime
from typing import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_config.schema import LedgerConfig, SchedulerSettings
from ledger_erp.service import ErpSyncService, TenantSyncResult
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.integration_config import IntegrationConfig
from ledger_kernel.selectors.integration_selector import (
    IntegrationConfigSelector,
    IntegrationSnapshot,
)

from ledger_batch.domain.schedule import compute_next_sync, is_due, sync_state, window_start
from ledger_batch.domain.types import SyncState, SyncStatus, TenantRunOutcome, TickResult

logger = get_logger("batch.scheduler")

SyncRunner = Callable[[Session, IntegrationSnapshot, date | None], TenantSyncResult]
DueQuery = Callable[[Session, datetime], list[IntegrationSnapshot]]


def enabled_due_tenants(session: Session, now: datetime) -> list[IntegrationSnapshot]:
    """Every enabled integration whose next_sync_at is unset or has passed."""
    return [s for s in IntegrationConfigSelector(session).enabled_configs() if is_due(s, now)]


class SyncScheduler:
    """Polling scheduler for per-tenant ERP syncs.

    Contract:
        - ``tick()`` runs every due tenant once and returns a TickResult.
        - ``start()`` / ``stop()`` for background thread operation.
        - Respects the stop signal between submissions; in-flight tenants
          finish.

    Non-goals:
        - NOT a distributed scheduler (no leader election).
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        config: LedgerConfig | None = None,
        clock: Clock | None = None,
        sync_runner: SyncRunner | None = None,
        due_query: DueQuery | None = None,
        settings: SchedulerSettings | None = None,
    ):
        self._session_factory = session_factory
        self._config = config or LedgerConfig.with_defaults()
        self._settings = settings or self._config.scheduler
        self._clock = clock or SystemClock()
        self._sync_runner = sync_runner or self._default_runner
        self._due_query = due_query or enabled_due_tenants
        self._tick_interval = self._settings.tick_interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._running: set[str] = set()
        self._running_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def tick(self) -> TickResult:
        """Run every due tenant once (public for testing)."""
        now = self._clock.now()
        session = self._session_factory()
        try:
            due = self._due_query(session, now)
        finally:
            session.close()

        if not due:
            logger.debug("scheduler_nothing_due")
            return TickResult()

        outcomes: list[TenantRunOutcome] = []
        deferred = 0
        workers = max(1, min(self._settings.max_parallel_tenants, len(due)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="erp-sync") as pool:
            futures = []
            for index, snapshot in enumerate(due):
                if self._stop_event.is_set():
                    deferred = len(due) - index
                    break
                futures.append(pool.submit(self._run_tenant, snapshot))
            for future in as_completed(futures):
                outcomes.append(future.result())

        outcomes.sort(key=lambda o: o.tenant_id)
        result = TickResult(
            due=len(due),
            succeeded=sum(1 for o in outcomes if o.status is SyncStatus.SUCCESS),
            partial=sum(1 for o in outcomes if o.status is SyncStatus.PARTIAL),
            failed=sum(1 for o in outcomes if o.status is SyncStatus.FAILED),
            deferred=deferred,
            outcomes=tuple(outcomes),
        )
        logger.info(
            "scheduler_tick_completed",
            extra={
                "due": result.due,
                "succeeded": result.succeeded,
                "partial": result.partial,
                "failed": result.failed,
                "deferred": result.deferred,
            },
        )
        return result

    def state_of(self, snapshot: IntegrationSnapshot) -> SyncState:
        with self._running_lock:
            running = snapshot.tenant_id in self._running
        return sync_state(snapshot, self._clock.now(), running=running)

    def start(self) -> None:
        """Start the scheduler in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="erp-sync-scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info("scheduler_started", extra={"tick_interval": self._tick_interval})

    def stop(self, timeout: float = 30.0) -> None:
        """Signal stop and wait for in-flight tenants to finish.

        Args:
            timeout: Max seconds to wait for the thread to finish.
        """
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("scheduler_stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _run_loop(self) -> None:
        """Background polling loop. Exits when stop_event is set."""
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("scheduler_tick_exception")
            self._stop_event.wait(timeout=self._tick_interval)

    def _default_runner(
        self, session: Session, snapshot: IntegrationSnapshot, date_from: date | None
    ) -> TenantSyncResult:
        service = ErpSyncService(session, config=self._config, clock=self._clock)
        return service.sync_tenant(
            snapshot.tenant_id,
            token=snapshot.api_token,
            modules=snapshot.enabled_modules or None,
            date_from=date_from,
        )

    def _run_tenant(self, snapshot: IntegrationSnapshot) -> TenantRunOutcome:
        tenant_id = snapshot.tenant_id
        with self._running_lock:
            self._running.add(tenant_id)

        status = SyncStatus.FAILED
        error: str | None = None
        session = self._session_factory()
        try:
            with LogContext.bind(tenant_id=tenant_id, producer="scheduler"):
                try:
                    result = self._sync_runner(session, snapshot, window_start(snapshot))
                    session.commit()
                    status = SyncStatus(result.status)
                except Exception as exc:
                    session.rollback()
                    error = str(exc) or exc.__class__.__name__
                    logger.exception("tenant_sync_failed", extra={"tenant_id": tenant_id})

                synced_at = self._clock.now()
                next_sync_at = compute_next_sync(
                    synced_at,
                    snapshot.sync_frequency_minutes,
                    self._settings.default_frequency_minutes,
                )
                self._record_attempt(session, tenant_id, synced_at, next_sync_at, status)
        finally:
            session.close()
            with self._running_lock:
                self._running.discard(tenant_id)

        return TenantRunOutcome(
            tenant_id=tenant_id,
            status=status,
            synced_at=synced_at,
            next_sync_at=next_sync_at,
            error=error,
        )

    def _record_attempt(
        self,
        session: Session,
        tenant_id: str,
        synced_at: datetime,
        next_sync_at: datetime,
        status: SyncStatus,
    ) -> None:
        """Advance the tenant's schedule.  Only the scheduler writes these columns."""
        try:
            model = session.execute(
                select(IntegrationConfig).where(IntegrationConfig.tenant_id == tenant_id)
            ).scalar_one_or_none()
            if model is None:
                return
            model.last_sync_at = synced_at
            model.next_sync_at = next_sync_at
            model.last_sync_status = status.value
            session.commit()
        except Exception:
            session.rollback()
            logger.exception("sync_schedule_update_failed", extra={"tenant_id": tenant_id})
            return

        logger.info(
            "tenant_sync_scheduled",
            extra={
                "tenant_id": tenant_id,
                "status": status.value,
                "next_sync_at": next_sync_at,
            },
        )

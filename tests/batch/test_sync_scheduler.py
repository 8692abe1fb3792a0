"""
Tests for SyncScheduler.

Setup data is committed through its own session and every assertion reads
through a fresh session, since each tenant run uses a session of its own.
"""

import threading
from datetime import date, timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import select

from ledger_batch import SyncScheduler, SyncState, SyncStatus, TickResult
from ledger_batch.domain import as_utc
from ledger_config.schema import SchedulerSettings
from ledger_erp.service import ModuleSyncResult, TenantSyncResult
from ledger_kernel.models.integration_config import IntegrationConfig
from ledger_kernel.models.transaction import Transaction
from ledger_kernel.selectors.integration_selector import IntegrationConfigSelector


class RecordingRunner:
    """Sync runner stand-in that records calls and returns a fixed status."""

    def __init__(self, clock, failing=(), partial=()):
        self.clock = clock
        self.failing = set(failing)
        self.partial = set(partial)
        self.calls: list[tuple[str, date | None]] = []
        self.lock = threading.Lock()

    def __call__(self, session, snapshot, date_from):
        with self.lock:
            self.calls.append((snapshot.tenant_id, date_from))
        if snapshot.tenant_id in self.failing:
            raise RuntimeError("erp unreachable")
        results = [ModuleSyncResult("orders", pulled=1, persisted=1)]
        if snapshot.tenant_id in self.partial:
            results.append(ModuleSyncResult("financial", pulled=0, persisted=0, error="boom"))
        return TenantSyncResult(snapshot.tenant_id, self.clock.now(), tuple(results))

    @property
    def tenants(self) -> list[str]:
        return sorted(t for t, _ in self.calls)


@pytest.fixture
def seed(session_factory):
    def _seed(tenant_id, **fields):
        values = {"api_token": "tok", "enabled_modules": ["orders"], "enabled": True}
        values.update(fields)
        with session_factory() as s:
            s.add(IntegrationConfig(tenant_id=tenant_id, **values))
            s.commit()

    return _seed


@pytest.fixture
def config_of(session_factory):
    def _config_of(tenant_id):
        with session_factory() as s:
            return IntegrationConfigSelector(s).get(tenant_id)

    return _config_of


@pytest.fixture
def make_scheduler(session_factory, clock):
    def _make(runner=None, **settings):
        settings.setdefault("max_parallel_tenants", 1)
        return SyncScheduler(
            session_factory,
            clock=clock,
            sync_runner=runner,
            settings=SchedulerSettings(**settings),
        )

    return _make


class TestTick:
    def test_runs_enabled_due_tenants(self, make_scheduler, seed, clock, config_of):
        seed("tenant-a")
        seed("tenant-b")
        seed("tenant-c", enabled=False)
        runner = RecordingRunner(clock)

        result = make_scheduler(runner).tick()

        assert runner.tenants == ["tenant-a", "tenant-b"]
        assert (result.due, result.succeeded, result.ran) == (2, 2, 2)
        assert [o.tenant_id for o in result.outcomes] == ["tenant-a", "tenant-b"]
        assert config_of("tenant-c").last_sync_at is None

    def test_records_attempt_and_next_run(self, make_scheduler, seed, clock, config_of):
        seed("tenant-a")
        seed("tenant-b", sync_frequency_minutes=60)

        make_scheduler(RecordingRunner(clock)).tick()

        a, b = config_of("tenant-a"), config_of("tenant-b")
        assert as_utc(a.last_sync_at) == clock.now()
        assert as_utc(a.next_sync_at) == clock.now() + timedelta(minutes=1440)
        assert as_utc(b.next_sync_at) == clock.now() + timedelta(minutes=60)
        assert a.last_sync_status == "success"

    def test_not_due_again_until_next_sync(self, make_scheduler, seed, clock):
        seed("tenant-a", sync_frequency_minutes=60)
        runner = RecordingRunner(clock)
        scheduler = make_scheduler(runner)

        scheduler.tick()
        assert scheduler.tick() == TickResult()

        clock.advance(minutes=59)
        assert scheduler.tick().due == 0

        clock.advance(minutes=1)
        assert scheduler.tick().succeeded == 1
        assert len(runner.calls) == 2

    def test_second_pull_starts_at_previous_attempt(self, make_scheduler, seed, clock):
        seed("tenant-a", sync_frequency_minutes=30)
        runner = RecordingRunner(clock)
        scheduler = make_scheduler(runner)

        scheduler.tick()
        clock.advance(minutes=30)
        scheduler.tick()

        assert runner.calls == [("tenant-a", None), ("tenant-a", date(2025, 3, 10))]

    def test_failure_is_recorded_and_isolated(self, make_scheduler, seed, clock, config_of, captured_logs):
        seed("tenant-a")
        seed("tenant-b")

        result = make_scheduler(RecordingRunner(clock, failing={"tenant-a"})).tick()

        assert (result.failed, result.succeeded) == (1, 1)
        failed = result.outcomes[0]
        assert failed.status is SyncStatus.FAILED
        assert failed.error == "erp unreachable"
        a = config_of("tenant-a")
        assert a.last_sync_status == "failed"
        assert as_utc(a.next_sync_at) == clock.now() + timedelta(days=1)
        assert config_of("tenant-b").last_sync_status == "success"
        errors = [r for r in captured_logs() if r["message"] == "tenant_sync_failed"]
        assert errors[0]["tenant_id"] == "tenant-a"
        assert errors[0]["exc_type"] == "RuntimeError"

    def test_partial_status(self, make_scheduler, seed, clock, config_of):
        seed("tenant-a")
        result = make_scheduler(RecordingRunner(clock, partial={"tenant-a"})).tick()
        assert result.partial == 1
        assert config_of("tenant-a").last_sync_status == "partial"

    def test_stop_defers_remaining_tenants(self, make_scheduler, seed, clock, config_of):
        seed("tenant-a")
        seed("tenant-b")
        runner = RecordingRunner(clock)
        scheduler = make_scheduler(runner)

        scheduler.stop()
        result = scheduler.tick()

        assert (result.due, result.deferred, result.ran) == (2, 2, 0)
        assert runner.calls == []
        assert config_of("tenant-a").next_sync_at is None

    def test_custom_due_query(self, session_factory, clock):
        runner = RecordingRunner(clock)
        scheduler = SyncScheduler(
            session_factory,
            clock=clock,
            sync_runner=runner,
            due_query=lambda session, now: [],
        )
        assert scheduler.tick() == TickResult()


class TestStateOf:
    def test_reports_running_during_pull(self, make_scheduler, seed, clock, config_of):
        seed("tenant-a")
        observed = []
        scheduler = None

        def runner(session, snapshot, date_from):
            observed.append(scheduler.state_of(snapshot))
            return RecordingRunner(clock)(session, snapshot, date_from)

        scheduler = make_scheduler(runner)
        assert scheduler.state_of(config_of("tenant-a")) is SyncState.DUE

        scheduler.tick()

        assert observed == [SyncState.RUNNING]
        assert scheduler.state_of(config_of("tenant-a")) is SyncState.COOLING_DOWN


class TestDefaultRunner:
    def test_pulls_through_erp_sync_service(self, make_scheduler, seed, session_factory, erp_responses):
        seed("tenant-a", api_token="live-token")

        def post(url, data=None, **kwargs):
            if url.endswith("pedidos.pesquisa.php"):
                return erp_responses.ok(pedidos=[{"pedido": {"id": "9", "valor_total": "12,00"}}])
            return erp_responses.no_records()

        with patch("requests.Session.post", side_effect=post) as mocked:
            result = make_scheduler().tick()

        assert result.succeeded == 1
        assert mocked.call_args_list[0].kwargs["data"]["token"] == "live-token"
        with session_factory() as s:
            refs = s.execute(select(Transaction.source_ref)).scalars().all()
        assert refs == ["tiny:order:9"]


class TestBackgroundLoop:
    def test_start_and_stop(self, make_scheduler, seed, clock):
        seed("tenant-a")
        ran = threading.Event()

        def runner(session, snapshot, date_from):
            ran.set()
            return RecordingRunner(clock)(session, snapshot, date_from)

        scheduler = make_scheduler(runner, tick_interval_seconds=1)
        scheduler.start()
        try:
            assert ran.wait(timeout=5)
            assert scheduler.is_running
        finally:
            scheduler.stop(timeout=5)

        assert not scheduler.is_running

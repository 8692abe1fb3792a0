"""Tests for the pure schedule functions in ledger_batch.domain.schedule."""

from datetime import date, datetime, timedelta, timezone

import pytest

from ledger_batch.domain import (
    SyncState,
    compute_next_sync,
    is_due,
    sync_state,
    window_start,
)
from ledger_kernel.selectors.integration_selector import IntegrationSnapshot

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def snapshot(**overrides) -> IntegrationSnapshot:
    values = {
        "tenant_id": "tenant-a",
        "api_token": "tok",
        "enabled_modules": ("orders",),
        "enabled": True,
        "sync_frequency_minutes": None,
        "last_sync_at": None,
        "next_sync_at": None,
    }
    values.update(overrides)
    return IntegrationSnapshot(**values)


class TestIsDue:
    def test_never_scheduled_is_due(self):
        assert is_due(snapshot(), NOW)

    def test_disabled_is_never_due(self):
        assert not is_due(snapshot(enabled=False), NOW)
        assert not is_due(snapshot(enabled=False, next_sync_at=NOW - timedelta(days=1)), NOW)

    @pytest.mark.parametrize(
        "offset, expected",
        [(timedelta(minutes=-1), True), (timedelta(0), True), (timedelta(minutes=1), False)],
    )
    def test_compares_against_next_sync(self, offset, expected):
        assert is_due(snapshot(next_sync_at=NOW + offset), NOW) is expected

    def test_naive_next_sync_is_utc(self):
        naive = (NOW + timedelta(hours=1)).replace(tzinfo=None)
        assert not is_due(snapshot(next_sync_at=naive), NOW)
        assert is_due(snapshot(next_sync_at=naive), NOW + timedelta(hours=1))


class TestComputeNextSync:
    def test_uses_tenant_frequency(self):
        assert compute_next_sync(NOW, 30) == NOW + timedelta(minutes=30)

    @pytest.mark.parametrize("frequency", [None, 0, -5])
    def test_falls_back_to_default(self, frequency):
        assert compute_next_sync(NOW, frequency) == NOW + timedelta(minutes=1440)
        assert compute_next_sync(NOW, frequency, default_minutes=90) == NOW + timedelta(minutes=90)

    def test_result_is_timezone_aware(self):
        result = compute_next_sync(NOW.replace(tzinfo=None), 10)
        assert result.tzinfo is not None
        assert result == NOW + timedelta(minutes=10)


class TestSyncState:
    def test_states(self):
        assert sync_state(snapshot(enabled=False), NOW) is SyncState.IDLE
        assert sync_state(snapshot(), NOW) is SyncState.DUE
        assert sync_state(snapshot(next_sync_at=NOW + timedelta(hours=1)), NOW) is SyncState.COOLING_DOWN

    def test_running_wins(self):
        assert sync_state(snapshot(enabled=False), NOW, running=True) is SyncState.RUNNING


class TestWindowStart:
    def test_first_sync_is_unbounded(self):
        assert window_start(snapshot()) is None

    def test_previous_attempt_date(self):
        assert window_start(snapshot(last_sync_at=datetime(2025, 3, 9, 23, 30))) == date(2025, 3, 9)

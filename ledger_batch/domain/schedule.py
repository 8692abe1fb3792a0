"""
Pure sync-schedule evaluation.

Contract:
    ``is_due(snapshot, now)``, ``compute_next_sync()`` and ``sync_state()``
    are PURE: no I/O, no clock reads.  The scheduler passes the current time
    from its injected Clock.

Architecture: ledger_batch/domain.  ZERO I/O.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from ledger_kernel.selectors.integration_selector import IntegrationSnapshot

from ledger_batch.domain.types import SyncState

DEFAULT_FREQUENCY_MINUTES = 1440


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_due(snapshot: IntegrationSnapshot, now: datetime) -> bool:
    """
    Rules:
        - Disabled integrations are never due.
        - A never-scheduled integration (next_sync_at unset) is due.
        - Otherwise due once ``now >= next_sync_at``.
    """
    if not snapshot.enabled:
        return False
    if snapshot.next_sync_at is None:
        return True
    return as_utc(now) >= as_utc(snapshot.next_sync_at)


def compute_next_sync(
    now: datetime,
    frequency_minutes: int | None,
    default_minutes: int = DEFAULT_FREQUENCY_MINUTES,
) -> datetime:
    """``now`` plus the tenant frequency (or the default when unset or invalid)."""
    minutes = frequency_minutes if frequency_minutes and frequency_minutes > 0 else default_minutes
    return as_utc(now) + timedelta(minutes=minutes)


def sync_state(snapshot: IntegrationSnapshot, now: datetime, running: bool = False) -> SyncState:
    if running:
        return SyncState.RUNNING
    if not snapshot.enabled:
        return SyncState.IDLE
    if is_due(snapshot, now):
        return SyncState.DUE
    return SyncState.COOLING_DOWN


def window_start(snapshot: IntegrationSnapshot) -> date | None:
    """Lower bound of the next pull: the date of the previous attempt."""
    if snapshot.last_sync_at is None:
        return None
    return as_utc(snapshot.last_sync_at).date()

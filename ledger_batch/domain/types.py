"""
ledger_batch.domain.types -- Pure frozen dataclasses for sync scheduling.

ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class SyncState(str, Enum):
    """Per-tenant scheduling state."""

    IDLE = "idle"  # Integration disabled; never scheduled
    DUE = "due"  # Enabled and next_sync_at is unset or has passed
    RUNNING = "running"  # A pull is in flight
    COOLING_DOWN = "cooling_down"  # Enabled, waiting for next_sync_at


class SyncStatus(str, Enum):
    """Result recorded on IntegrationConfig.last_sync_status."""

    SUCCESS = "success"
    PARTIAL = "partial"  # At least one module failed
    FAILED = "failed"  # Every module failed, or the run raised


@dataclass(frozen=True)
class TenantRunOutcome:
    tenant_id: str
    status: SyncStatus
    synced_at: datetime
    next_sync_at: datetime
    error: str | None = None


@dataclass(frozen=True)
class TickResult:
    """Summary of one scheduler tick."""

    due: int = 0
    succeeded: int = 0
    partial: int = 0
    failed: int = 0
    # Due tenants left for the next tick because a stop was requested
    deferred: int = 0
    outcomes: tuple[TenantRunOutcome, ...] = ()

    @property
    def ran(self) -> int:
        return self.succeeded + self.partial + self.failed

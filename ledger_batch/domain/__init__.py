"""Pure scheduling types and functions.  ZERO I/O."""

from ledger_batch.domain.schedule import (
    DEFAULT_FREQUENCY_MINUTES,
    as_utc,
    compute_next_sync,
    is_due,
    sync_state,
    window_start,
)
from ledger_batch.domain.types import SyncState, SyncStatus, TenantRunOutcome, TickResult

__all__ = [
    "DEFAULT_FREQUENCY_MINUTES",
    "SyncState",
    "SyncStatus",
    "TenantRunOutcome",
    "TickResult",
    "as_utc",
    "compute_next_sync",
    "is_due",
    "sync_state",
    "window_start",
]

"""
ledger_batch -- Scheduled per-tenant ERP pulls.

    domain/     pure due/next-run evaluation (ZERO I/O)
    services/   SyncScheduler: polling loop with a bounded worker pool
"""

from ledger_batch.domain import SyncState, SyncStatus, TickResult
from ledger_batch.services import SyncScheduler

__all__ = ["SyncScheduler", "SyncState", "SyncStatus", "TickResult"]

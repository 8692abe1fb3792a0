from ledger_batch.services.scheduler import SyncScheduler

__all__ = ["SyncScheduler"]

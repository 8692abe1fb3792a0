"""Kernel services: the ledger write path and tenant locking."""

from ledger_kernel.services.ledger_store import LedgerStore
from ledger_kernel.services.tenant_locks import TenantLockRegistry, default_registry

__all__ = [
    "LedgerStore",
    "TenantLockRegistry",
    "default_registry",
]

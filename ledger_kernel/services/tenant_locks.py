"""
TenantLockRegistry -- per-tenant mutual exclusion for reconcile cycles.

Two syncs (or a sync and an import) for the same tenant must not both decide
that a reference is new.  Holding the tenant's lock for the whole
lookup-then-write cycle prevents that inside one process; the unique
constraint on (tenant_id, origin, source_ref) covers the rest.
"""

import threading
from contextlib import contextmanager
from typing import Iterator

from ledger_kernel.logging_config import get_logger

logger = get_logger("services.tenant_locks")


class TenantLockRegistry:
    """Lazily creates one ``threading.Lock`` per tenant id."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def lock_for(self, tenant_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(tenant_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[tenant_id] = lock
            return lock

    @contextmanager
    def hold(self, tenant_id: str) -> Iterator[None]:
        """Block until the tenant's lock is free, then hold it."""
        lock = self.lock_for(tenant_id)
        if not lock.acquire(blocking=False):
            logger.debug("tenant_lock_waiting", extra={"tenant_id": tenant_id})
            lock.acquire()
        try:
            yield
        finally:
            lock.release()

    def is_held(self, tenant_id: str) -> bool:
        return self.lock_for(tenant_id).locked()


# Process-wide registry shared by the import and sync entrypoints
default_registry = TenantLockRegistry()

"""Tests for TenantLockRegistry."""

import threading
import time

from ledger_kernel.services.tenant_locks import TenantLockRegistry


def test_same_tenant_shares_one_lock():
    registry = TenantLockRegistry()
    assert registry.lock_for("a") is registry.lock_for("a")
    assert registry.lock_for("a") is not registry.lock_for("b")


def test_hold_marks_tenant_busy():
    registry = TenantLockRegistry()
    with registry.hold("a"):
        assert registry.is_held("a")
        assert not registry.is_held("b")
    assert not registry.is_held("a")


def test_hold_releases_on_error():
    registry = TenantLockRegistry()
    try:
        with registry.hold("a"):
            raise ValueError("x")
    except ValueError:
        pass
    assert not registry.is_held("a")


def test_second_holder_waits():
    registry = TenantLockRegistry()
    order: list[str] = []
    entered = threading.Event()

    def contender():
        entered.set()
        with registry.hold("a"):
            order.append("contender")

    with registry.hold("a"):
        worker = threading.Thread(target=contender)
        worker.start()
        entered.wait(timeout=5)
        time.sleep(0.05)
        order.append("holder")
    worker.join(timeout=5)

    assert order == ["holder", "contender"]

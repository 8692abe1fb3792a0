"""Database layer: declarative base, column types, engine and sessions."""

from ledger_kernel.db.base import Base, TrackedBase, UUIDString
from ledger_kernel.db.types import round_money

__all__ = [
    "Base",
    "TrackedBase",
    "UUIDString",
    "round_money",
]

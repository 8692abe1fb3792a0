"""
Module: ledger_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors.

Invariants enforced:
    - Read-only access: selectors accept a Session from the caller and MUST
      NOT call session.add(), session.delete(), session.commit() or
      session.flush().
    - DTO return convention: selectors return frozen dataclasses or plain
      values, never ORM instances.
    - The caller owns the session and its transaction scope.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """Base class for all selectors; stores the caller's session."""

    def __init__(self, session: Session):
        self.session = session

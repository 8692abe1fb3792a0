"""
Clock -- Deterministic time abstraction.

Responsibility:
    Injectable clock so that ingestion, sync and scheduling code never call
    ``datetime.now()`` or ``date.today()`` directly.  The scheduler's due-time
    decisions and the ERP sync's "as of" dates all come from a Clock.

Architecture position:
    Kernel > Domain -- zero I/O except SystemClock, the one sanctioned
    boundary for wall-clock time.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):
    """
    Abstract clock interface.

    Guarantees:
        - ``now()`` returns a timezone-aware UTC ``datetime``.
        - ``today()`` is the UTC calendar date of ``now()``.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...

    def today(self) -> date:
        """Get the current UTC date."""
        return self.now().astimezone(timezone.utc).date()


class SystemClock(Clock):
    """Production clock that returns actual system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    ``now()`` returns the same value on repeated calls until ``advance()``
    or ``set_time()`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._time = fixed_time or datetime(
            2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc
        )

    def now(self) -> datetime:
        return self._time

    def set_time(self, time: datetime) -> None:
        """Set the clock to a specific time."""
        self._time = time

    def advance(self, *, minutes: int = 0, seconds: int = 0) -> datetime:
        """Move the clock forward and return the new time."""
        self._time = self._time + timedelta(minutes=minutes, seconds=seconds)
        return self._time

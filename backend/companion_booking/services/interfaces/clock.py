"""
Clock interface so time-dependent rules never read the wall clock directly.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone


class Clock(ABC):
    """Source of the current instant. Implementations must return aware datetimes."""

    @abstractmethod
    def now(self) -> datetime:
        pass


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

"""
Core Module - Clock.

============================================================
RESPONSIBILITY
============================================================
Time source for everything the decoration layer stamps:

- Activation report start/end
- Periodic task runs (wall time and run duration)
- Feed snapshots

Tests swap in a MockClock, either per component (clock=...)
or process-wide through ClockFactory.

============================================================
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional
import threading
import time


# ============================================================
# CLOCK PROTOCOL
# ============================================================

class ClockProtocol(ABC):
    """Wall-clock and monotonic time."""

    @abstractmethod
    def now(self) -> datetime:
        """Current time, timezone-aware UTC."""
        pass

    @abstractmethod
    def monotonic(self) -> float:
        """Seconds from an arbitrary origin, for measuring durations."""
        pass


class SystemClock(ClockProtocol):

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        return time.monotonic()


class MockClock(ClockProtocol):
    """
    Manually driven clock.

    Wall time and monotonic time only move on advance().
    """

    def __init__(self, initial_time: Optional[datetime] = None):
        if initial_time is not None and initial_time.tzinfo is None:
            initial_time = initial_time.replace(tzinfo=timezone.utc)
        self._time = initial_time or datetime.now(timezone.utc)
        self._elapsed = 0.0
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._time

    def monotonic(self) -> float:
        with self._lock:
            return self._elapsed

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._time += timedelta(seconds=seconds)
            self._elapsed += seconds


# ============================================================
# CLOCK FACTORY
# ============================================================

class ClockFactory:
    """Process-wide clock used when a component was given none."""

    _instance: Optional[ClockProtocol] = None
    _lock = threading.Lock()

    @classmethod
    def get_clock(cls) -> ClockProtocol:
        with cls._lock:
            if cls._instance is None:
                cls._instance = SystemClock()
            return cls._instance

    @classmethod
    def set_clock(cls, clock: Optional[ClockProtocol]) -> None:
        """Install a clock (None restores the system clock on next use)."""
        with cls._lock:
            cls._instance = clock


__all__ = [
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "ClockFactory",
]

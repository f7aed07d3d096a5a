"""Clock abstraction for testable pacing logic.

This module provides a Clock protocol that abstracts time access and
sleeping, so rate governors can be tested deterministically.

Production code uses SystemClock (the default).
Tests inject MockClock, a virtual clock whose sleep() advances time
instantly instead of blocking.
"""

from __future__ import annotations

import threading
import time
from typing import Protocol


class Clock(Protocol):
    """Abstract clock for pacing decisions.

    Implementations:
    - SystemClock: Uses time.monotonic() and time.sleep() (production)
    - MockClock: Virtual time advanced by sleep() and advance() (testing)
    """

    def monotonic(self) -> float:
        """Return monotonic time in seconds.

        Must never go backwards. Corresponds to time.monotonic().
        """
        ...

    def sleep(self, seconds: float) -> None:
        """Suspend the caller for the given number of seconds."""
        ...


class SystemClock:
    """Production clock using time.monotonic() and time.sleep()."""

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class MockClock:
    """Virtual clock for deterministic testing.

    sleep() does not block: it advances virtual time and records the
    requested duration, so tests can assert on how long a governor
    asked to wait.

    Example:
        clock = MockClock(start=0.0)
        governor = SteadyGovernor(interval_seconds=3.0, clock=clock)

        governor.permit()  # t=0, no wait
        governor.permit()  # sleeps 3.0 virtual seconds
        assert clock.sleeps == [3.0]
        assert clock.monotonic() == 3.0
    """

    def __init__(self, start: float = 0.0) -> None:
        """Initialize mock clock at a given time.

        Args:
            start: Initial monotonic time value (default 0.0).
        """
        self._current = start
        self._lock = threading.Lock()
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        with self._lock:
            return self._current

    def sleep(self, seconds: float) -> None:
        """Advance virtual time by seconds and record the sleep.

        Raises:
            ValueError: If seconds is negative.
        """
        if seconds < 0:
            raise ValueError(f"Cannot sleep for negative duration: {seconds}")
        with self._lock:
            self.sleeps.append(seconds)
            self._current += seconds

    def advance(self, seconds: float) -> None:
        """Advance mock time without recording a sleep.

        Raises:
            ValueError: If seconds is negative.
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance time by negative amount: {seconds}")
        with self._lock:
            self._current += seconds


# Default clock for production use
DEFAULT_CLOCK: Clock = SystemClock()

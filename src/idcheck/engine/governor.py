"""Rate governors: pacing strategies for admissions.

A governor exposes one blocking operation, permit(), which suspends the
caller until the pacing policy allows one more item to be admitted.
Governors pace admission only; they know nothing about outcomes.

Strategies:
- SteadyGovernor: fixed minimum interval between successive admissions
- BatchGovernor: batches admitted back-to-back, fixed pause between batches
- CeilingGovernor: at most N admissions per rolling minute (pyrate-limiter)

All strategies reserve their slot under a lock and sleep outside it, so
concurrent callers are paced globally without holding the lock while
waiting.
"""

from __future__ import annotations

from threading import Lock
from typing import Any, Protocol

import structlog

from idcheck.contracts.errors import ConfigurationError
from idcheck.core.config import BatchPacing, CeilingPacing, PacingSettings, SteadyPacing
from idcheck.core.rate_limit import RateLimiter
from idcheck.engine.clock import DEFAULT_CLOCK, Clock

logger = structlog.get_logger(__name__)


class RateGovernor(Protocol):
    """Pacing policy applied before each admission."""

    def permit(self) -> None:
        """Block until one more admission is allowed."""
        ...

    def mark_admitted(self) -> None:
        """Note that the permitted item has been handed off."""
        ...

    def get_stats(self) -> dict[str, Any]:
        """Pacing statistics for the run summary."""
        ...

    def close(self) -> None:
        """Release any resources held by the governor."""
        ...


class _GovernorStats:
    """Thread-safe permit and wait counters shared by all strategies."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.permits = 0
        self.waits = 0
        self.total_wait_ms = 0.0

    def record(self, wait_seconds: float) -> None:
        with self._lock:
            self.permits += 1
            if wait_seconds > 0:
                self.waits += 1
                self.total_wait_ms += wait_seconds * 1000

    def as_dict(self) -> dict[str, Any]:
        with self._lock:
            return {
                "permits": self.permits,
                "waits": self.waits,
                "total_wait_ms": self.total_wait_ms,
            }


class SteadyGovernor:
    """Enforce a minimum interval between successive admissions.

    The first permit is granted immediately. Each later permit is
    granted no earlier than interval_seconds after the slot of the
    previous one, so N permits span at least (N-1) * interval_seconds.
    mark_admitted() pushes the next slot back to interval_seconds after
    the hand-off, so an admission that blocked on a full queue is still
    followed by a full interval. No wait follows the last permit.
    """

    def __init__(self, interval_seconds: float, *, clock: Clock | None = None) -> None:
        if interval_seconds < 0:
            raise ValueError(f"interval_seconds must be non-negative, got {interval_seconds}")
        self._interval = interval_seconds
        self._clock = clock if clock is not None else DEFAULT_CLOCK
        self._lock = Lock()
        self._next_slot: float | None = None
        self._stats = _GovernorStats()

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def permit(self) -> None:
        with self._lock:
            now = self._clock.monotonic()
            slot = now if self._next_slot is None else max(now, self._next_slot)
            self._next_slot = slot + self._interval
            wait = slot - now

        # Sleep OUTSIDE the lock so other callers can reserve later slots
        if wait > 0:
            self._clock.sleep(wait)
        self._stats.record(wait)

    def mark_admitted(self) -> None:
        with self._lock:
            handed_off = self._clock.monotonic()
            if self._next_slot is None or self._next_slot < handed_off + self._interval:
                self._next_slot = handed_off + self._interval

    def get_stats(self) -> dict[str, Any]:
        return {"policy": "steady", "interval_ms": self._interval * 1000, **self._stats.as_dict()}

    def close(self) -> None:
        pass


class BatchGovernor:
    """Admit batches of batch_size back-to-back, pausing between batches.

    The permit that opens every batch after the first sleeps
    pause_seconds before it is granted; permits inside a batch are
    immediate unless the batch's pause is still running. For N permits
    exactly ceil(N / batch_size) - 1 pauses occur.
    """

    def __init__(self, batch_size: int, pause_seconds: float, *, clock: Clock | None = None) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if pause_seconds < 0:
            raise ValueError(f"pause_seconds must be non-negative, got {pause_seconds}")
        self._batch_size = batch_size
        self._pause = pause_seconds
        self._clock = clock if clock is not None else DEFAULT_CLOCK
        self._lock = Lock()
        self._issued = 0
        self._batch_opens_at = 0.0
        self._pauses = 0
        self._stats = _GovernorStats()

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def pauses(self) -> int:
        """Number of inter-batch pauses taken so far."""
        with self._lock:
            return self._pauses

    def permit(self) -> None:
        with self._lock:
            now = self._clock.monotonic()
            index = self._issued
            self._issued += 1
            if index > 0 and index % self._batch_size == 0:
                self._batch_opens_at = now + self._pause
                self._pauses += 1
                logger.debug("batch pause", batch=index // self._batch_size, pause_seconds=self._pause)
            wait = max(0.0, self._batch_opens_at - now)

        if wait > 0:
            self._clock.sleep(wait)
        self._stats.record(wait)

    def mark_admitted(self) -> None:
        pass

    def get_stats(self) -> dict[str, Any]:
        return {
            "policy": "batch",
            "batch_size": self._batch_size,
            "pause_ms": self._pause * 1000,
            "pauses": self.pauses,
            **self._stats.as_dict(),
        }

    def close(self) -> None:
        pass


class CeilingGovernor:
    """Cap permits at requests_per_minute over a rolling window.

    Bursts up to the cap are granted immediately; later permits block
    inside pyrate-limiter until the window frees a slot. Waiting uses
    real time, so the injected clock is only used to measure waits.
    """

    def __init__(self, requests_per_minute: int, *, clock: Clock | None = None) -> None:
        self._limiter = RateLimiter("admission", limit=requests_per_minute)
        self._clock = clock if clock is not None else DEFAULT_CLOCK
        self._stats = _GovernorStats()

    def permit(self) -> None:
        if self._limiter.try_acquire():
            self._stats.record(0.0)
            return
        started = self._clock.monotonic()
        self._limiter.acquire()
        self._stats.record(self._clock.monotonic() - started)

    def mark_admitted(self) -> None:
        pass

    def get_stats(self) -> dict[str, Any]:
        return {
            "policy": "ceiling",
            "requests_per_minute": self._limiter.limit,
            **self._stats.as_dict(),
        }

    def close(self) -> None:
        self._limiter.close()


def build_governor(pacing: PacingSettings, *, clock: Clock | None = None) -> RateGovernor:
    """Create the governor matching a pacing configuration.

    Args:
        pacing: Validated pacing settings
        clock: Clock for waiting and measuring (default: system clock)

    Returns:
        RateGovernor implementing the configured policy

    Raises:
        ConfigurationError: If the pacing type is not recognised.
    """
    if isinstance(pacing, SteadyPacing):
        return SteadyGovernor(pacing.interval_ms / 1000, clock=clock)
    if isinstance(pacing, BatchPacing):
        return BatchGovernor(pacing.size, pacing.pause_ms / 1000, clock=clock)
    if isinstance(pacing, CeilingPacing):
        return CeilingGovernor(pacing.requests_per_minute, clock=clock)
    raise ConfigurationError(f"Unknown pacing settings: {type(pacing).__name__}")

# src/idcheck/core/rate_limit/limiter.py
"""Rolling-window rate limiter backed by pyrate-limiter."""

from __future__ import annotations

import re
import threading
from typing import TYPE_CHECKING

from pyrate_limiter import (  # type: ignore[attr-defined]
    BucketFullException,
    Duration,
    InMemoryBucket,
    Limiter,
    Rate,
)

if TYPE_CHECKING:
    from types import TracebackType

# Bucket keys: letter first, then alphanumerics and underscores
_VALID_NAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]*$")


class RateLimiter:
    """At most `limit` acquisitions in any rolling `window`.

    acquire() blocks inside pyrate-limiter until the window has room;
    try_acquire() never blocks. One in-memory bucket per limiter, so a
    limiter only paces the process that owns it.

    Example:
        with RateLimiter("admission", limit=20) as limiter:
            limiter.acquire()   # blocks once 20 were taken in the last minute
            call_service()
    """

    def __init__(self, name: str, *, limit: int, window: Duration = Duration.MINUTE) -> None:
        """Initialize rate limiter.

        Args:
            name: Bucket key for this limiter.
            limit: Maximum acquisitions per window.
            window: Length of the rolling window (default one minute).

        Raises:
            ValueError: If name is invalid or limit is not positive.
        """
        if not _VALID_NAME_PATTERN.match(name):
            raise ValueError(
                f"Invalid rate limiter name: {name!r}. "
                "Use a letter followed by letters, digits or underscores."
            )
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")

        self.name = name
        self._limit = limit
        self._window = window
        self._lock = threading.Lock()
        self._bucket: InMemoryBucket | None = InMemoryBucket(rates=[Rate(limit, window)])
        # A blocking acquire may wait one full window plus pyrate-limiter's scheduling slack
        self._limiter: Limiter | None = Limiter(self._bucket, max_delay=2 * window.value, raise_when_fail=True)

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window.value / 1000

    def _require_open(self) -> tuple[InMemoryBucket, Limiter]:
        if self._bucket is None or self._limiter is None:
            raise RuntimeError(f"Rate limiter {self.name!r} is closed")
        return self._bucket, self._limiter

    def acquire(self) -> None:
        """Take one slot, blocking until the window has room."""
        _, limiter = self._require_open()
        limiter.try_acquire(self.name)

    def try_acquire(self) -> bool:
        """Take one slot only if the window has room right now.

        Returns:
            True if a slot was taken, False if the window is full.
        """
        bucket, limiter = self._require_open()
        with self._lock:
            if bucket.count() >= self._limit:
                return False
            original_max_delay = limiter.max_delay
            limiter.max_delay = None
            try:
                limiter.try_acquire(self.name)
            except BucketFullException:
                return False
            finally:
                limiter.max_delay = original_max_delay
            return True

    def close(self) -> None:
        """Dispose the bucket and stop its leak thread. Idempotent."""
        if self._bucket is not None and self._limiter is not None:
            self._limiter.dispose(self._bucket)
        self._bucket = None
        self._limiter = None

    def __enter__(self) -> RateLimiter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

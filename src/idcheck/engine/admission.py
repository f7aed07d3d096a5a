"""Bounded, closeable hand-off queue between dispatcher and workers.

queue.Queue has no notion of "closed", so end-of-input would need one
sentinel per worker. This queue carries the closed flag itself: take()
returns None once the queue is closed AND drained, and every worker
detects that condition on its own.
"""

from __future__ import annotations

from collections import deque
from threading import Condition


class QueueClosedError(RuntimeError):
    """put() was called after close()."""


class AdmissionQueue:
    """Thread-safe bounded FIFO with close semantics.

    - put() blocks while the queue is full
    - take() blocks while the queue is empty and open
    - take() returns None when the queue is closed and empty
    - close() wakes every blocked taker
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._items: deque[str] = deque()
        self._cond = Condition()
        self._closed = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def put(self, item: str) -> None:
        """Admit one item, blocking while the queue is full.

        Raises:
            QueueClosedError: If the queue has been closed.
        """
        with self._cond:
            while len(self._items) >= self._capacity and not self._closed:
                self._cond.wait()
            if self._closed:
                raise QueueClosedError("Cannot admit into a closed queue")
            self._items.append(item)
            self._cond.notify_all()

    def take(self) -> str | None:
        """Remove and return the oldest item.

        Returns:
            The next item, or None when the queue is closed and drained.
        """
        with self._cond:
            while not self._items and not self._closed:
                self._cond.wait()
            if not self._items:
                return None
            item = self._items.popleft()
            self._cond.notify_all()
            return item

    def close(self) -> None:
        """Signal end-of-input. Items already queued are still delivered."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

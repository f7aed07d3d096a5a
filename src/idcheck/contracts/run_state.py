"""Per-run counters shared by the dispatcher and the worker pool."""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock


@dataclass(frozen=True, slots=True)
class RunCounts:
    """Point-in-time copy of RunState counters."""

    pending: int
    admitted: int
    produced: int
    succeeded: int
    failed: int
    completed: bool


class RunState:
    """Thread-safe counters scoped to one pipeline run.

    Created by the Pipeline and passed explicitly to the Dispatcher
    (record_admission) and the WorkerPool (record_outcome). Only the
    Pipeline marks the run completed.

    Invariant: admitted >= produced at all times; the two are equal
    when the run completes.
    """

    def __init__(self, total: int) -> None:
        if total < 0:
            raise ValueError(f"total must be non-negative, got {total}")
        self._lock = Lock()
        self._total = total
        self._pending = total
        self._admitted = 0
        self._produced = 0
        self._succeeded = 0
        self._failed = 0
        self._completed = False

    @property
    def total(self) -> int:
        return self._total

    def record_admission(self) -> None:
        """Move one item from pending to admitted (thread-safe).

        Raises:
            RuntimeError: If more items are admitted than the run holds.
        """
        with self._lock:
            if self._pending == 0:
                raise RuntimeError(f"Admission beyond input size {self._total}")
            self._pending -= 1
            self._admitted += 1

    def revoke_admission(self) -> None:
        """Return an item whose hand-off failed from admitted to pending.

        Raises:
            RuntimeError: If every admitted item already has an outcome.
        """
        with self._lock:
            if self._admitted == self._produced:
                raise RuntimeError("No admitted item is awaiting an outcome")
            self._admitted -= 1
            self._pending += 1

    def record_outcome(self, *, succeeded: bool) -> int:
        """Count one produced outcome (thread-safe).

        Returns:
            Number of outcomes produced so far, including this one.
        """
        with self._lock:
            self._produced += 1
            if succeeded:
                self._succeeded += 1
            else:
                self._failed += 1
            return self._produced

    def mark_completed(self) -> None:
        with self._lock:
            self._completed = True

    def snapshot(self) -> RunCounts:
        """Consistent copy of all counters (thread-safe)."""
        with self._lock:
            return RunCounts(
                pending=self._pending,
                admitted=self._admitted,
                produced=self._produced,
                succeeded=self._succeeded,
                failed=self._failed,
                completed=self._completed,
            )

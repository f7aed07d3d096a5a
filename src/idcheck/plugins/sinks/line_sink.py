# src/idcheck/plugins/sinks/line_sink.py
"""Line-oriented result sink.

Writes one newline-terminated line per emitted outcome to stdout or to
a single append-only file.

Sink policy:
- full: every successful outcome as a compact JSON record
- valid_only: the bare identifier, only for valid verdicts

Failure outcomes are never written to the target. The worker that
produced them has already reported them on the diagnostic stream.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from threading import Lock
from types import TracebackType
from typing import IO, Any

import structlog

from idcheck.contracts.enums import SinkPolicy
from idcheck.contracts.errors import SinkWriteError
from idcheck.contracts.results import Outcome

logger = structlog.get_logger(__name__)


class LineSink:
    """Serialize outcomes as lines to one shared target.

    The target is opened once. Each line is written and flushed while
    holding a lock, so concurrent workers never interleave partial
    lines. Write errors (OSError) are logged and counted; the run goes on.

    Usage:
        with LineSink.open(SinkPolicy.VALID_ONLY, path=Path("valid.txt")) as sink:
            sink.emit(outcome)
    """

    def __init__(
        self,
        policy: SinkPolicy,
        stream: IO[str],
        *,
        owns_stream: bool = False,
        target_name: str = "<stream>",
    ) -> None:
        """Initialize sink over an already-open text stream.

        Args:
            policy: What to write for successful outcomes
            stream: Text stream receiving lines
            owns_stream: Close the stream in close()
            target_name: Target description for log events
        """
        self._policy = policy
        self._stream = stream
        self._owns_stream = owns_stream
        self._target_name = target_name
        self._lock = Lock()
        self._closed = False

        self._emitted = 0
        self._skipped = 0
        self._failures = 0
        self._write_errors = 0

    @classmethod
    def open(cls, policy: SinkPolicy, *, path: Path | None = None, encoding: str = "utf-8") -> LineSink:
        """Open a sink on a file path (append mode) or on stdout.

        The file is created if missing and never truncated.

        Raises:
            SinkWriteError: If the file cannot be opened. This is a setup
                failure and aborts the run before any admission.
        """
        if path is None:
            return cls(policy, sys.stdout, target_name="<stdout>")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            stream = open(path, "a", encoding=encoding)  # noqa: SIM115 - closed in close()
        except OSError as e:
            raise SinkWriteError(f"Cannot open {path}: {e}") from e
        return cls(policy, stream, owns_stream=True, target_name=str(path))

    @property
    def policy(self) -> SinkPolicy:
        return self._policy

    def render(self, outcome: Outcome) -> str | None:
        """Return the line for an outcome, or None when nothing is written."""
        if not outcome.succeeded:
            return None
        if self._policy == SinkPolicy.VALID_ONLY:
            return outcome.identifier if outcome.is_valid else None
        return json.dumps(outcome.to_record(), ensure_ascii=False, separators=(",", ":"))

    def emit(self, outcome: Outcome) -> None:
        line = self.render(outcome)
        with self._lock:
            if line is None:
                if outcome.succeeded:
                    self._skipped += 1
                else:
                    self._failures += 1
                return
            try:
                self._stream.write(line + "\n")
                self._stream.flush()
            # ValueError: unencodable line (UnicodeEncodeError) or stream closed under us
            except (OSError, ValueError) as e:
                self._write_errors += 1
                logger.error(
                    "sink write failed",
                    target=self._target_name,
                    identifier=outcome.identifier,
                    error=str(e),
                )
                return
            self._emitted += 1

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "target": self._target_name,
                "policy": str(self._policy),
                "emitted": self._emitted,
                "skipped": self._skipped,
                "failures": self._failures,
                "write_errors": self._write_errors,
            }

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            try:
                self._stream.flush()
            except (OSError, ValueError) as e:
                # ValueError: stream already closed by its owner
                logger.warning("sink flush failed", target=self._target_name, error=str(e))
            if self._owns_stream:
                self._stream.close()

    def __enter__(self) -> LineSink:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

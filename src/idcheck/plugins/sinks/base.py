"""Result sink protocol."""

from __future__ import annotations

from typing import Any, Protocol

from idcheck.contracts.results import Outcome


class ResultSink(Protocol):
    """Consumes outcomes as workers complete them.

    emit() is called concurrently from every worker. Implementations
    must serialize writes to their target and must not raise for write
    failures: a lost emission is logged and counted, never fatal.
    """

    def emit(self, outcome: Outcome) -> None:
        """Perform the single observable action for one outcome."""
        ...

    def get_stats(self) -> dict[str, Any]:
        """Emission statistics for the run summary."""
        ...

    def close(self) -> None:
        """Flush and release the target."""
        ...

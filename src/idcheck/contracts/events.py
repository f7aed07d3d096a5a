"""Run-level events reported to the caller."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from idcheck.contracts.enums import PipelineState


@dataclass(frozen=True, slots=True)
class RunSummary:
    """Completion signal returned by Pipeline.run().

    Attributes:
        state: Always PipelineState.COMPLETED when returned by a pipeline
        total: Number of input items
        admitted: Items handed to the worker pool
        produced: Outcomes produced (equals admitted on completion)
        succeeded: Outcomes where the service answered
        failed: Outcomes where the call failed
        duration_seconds: Wall time from start to completion
        max_concurrent_calls: Highest number of service calls in flight at once
        governor_stats: Pacing statistics from the rate governor
        sink_stats: Emission statistics from the result sink
    """

    state: PipelineState
    total: int
    admitted: int
    produced: int
    succeeded: int
    failed: int
    duration_seconds: float
    max_concurrent_calls: int = 0
    governor_stats: dict[str, Any] = field(default_factory=dict)
    sink_stats: dict[str, Any] = field(default_factory=dict)

    @property
    def exit_code(self) -> int:
        """0 when every item got an answer, 1 on partial failure, 2 when all failed."""
        if self.failed == 0:
            return 0
        if self.succeeded == 0:
            return 2
        return 1

"""Status codes and policies shared across component boundaries."""

from enum import StrEnum


class PipelineState(StrEnum):
    """Lifecycle of a single pipeline run.

    Transitions only move forward:
    IDLE -> RUNNING -> DRAINING -> COMPLETED, or IDLE -> COMPLETED
    for an empty input.
    """

    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    COMPLETED = "completed"


class SinkPolicy(StrEnum):
    """What a result sink writes for each successful outcome.

    FULL writes the structured record for every success.
    VALID_ONLY writes the bare identifier, and only for valid verdicts.
    """

    FULL = "full"
    VALID_ONLY = "valid_only"


class OutcomeStatus(StrEnum):
    """Discriminant of an Outcome."""

    SUCCESS = "success"
    FAILURE = "failure"

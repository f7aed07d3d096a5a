"""Shared types for idcheck.

Leaf module: imports nothing from engine, core or plugins.
"""

from idcheck.contracts.enums import OutcomeStatus, PipelineState, SinkPolicy
from idcheck.contracts.errors import (
    ConfigurationError,
    IdcheckError,
    InputSourceError,
    OrchestrationInvariantError,
    PipelineStateError,
    SinkWriteError,
    ValidationServiceError,
)
from idcheck.contracts.events import RunSummary
from idcheck.contracts.results import Outcome, Verdict
from idcheck.contracts.run_state import RunCounts, RunState

__all__ = [
    "ConfigurationError",
    "IdcheckError",
    "InputSourceError",
    "OrchestrationInvariantError",
    "Outcome",
    "OutcomeStatus",
    "PipelineState",
    "PipelineStateError",
    "RunCounts",
    "RunState",
    "RunSummary",
    "SinkPolicy",
    "SinkWriteError",
    "ValidationServiceError",
    "Verdict",
]

"""Exception hierarchy for idcheck.

Three families matter to the run:

- Per-item failures (ValidationServiceError): turned into a failure
  Outcome by the worker, logged, and the run continues.
- Sink write failures: logged and counted by the sink, the single
  emission is lost, the run continues.
- Fatal setup failures (InputSourceError, ConfigurationError, and
  SinkWriteError when the output target cannot be opened): raised
  before any admission begins and abort the run.

PipelineStateError and OrchestrationInvariantError indicate misuse or
bugs in the dispatch core and are never caught.
"""

from __future__ import annotations


class IdcheckError(Exception):
    """Base class for all idcheck errors."""


class ValidationServiceError(IdcheckError):
    """A single verification call failed.

    Covers timeouts, transport errors, non-success status codes and
    malformed response bodies. Never retried.

    Attributes:
        status_code: HTTP status code when the service answered, else None
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InputSourceError(IdcheckError):
    """The identifier list could not be read."""


class ConfigurationError(IdcheckError):
    """Settings are missing or invalid."""


class SinkWriteError(IdcheckError):
    """The sink target could not be opened for writing."""


class PipelineStateError(IdcheckError):
    """A pipeline was driven through an illegal state transition."""


class OrchestrationInvariantError(IdcheckError):
    """The dispatch core broke one of its own invariants.

    Raised when, for example, the number of outcomes produced does not
    match the number of items admitted once all workers have exited.
    This is always a bug, never a data problem.
    """

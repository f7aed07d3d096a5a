"""Verification results.

These types answer: "What happened to one identifier?"

IMPORTANT:
- Exactly one Outcome exists per admitted identifier, never zero, never two
- Use the Outcome.success() / Outcome.failure() factories; __post_init__
  rejects records that mix verdict and error
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from idcheck.contracts.enums import OutcomeStatus


@dataclass(frozen=True, slots=True)
class Verdict:
    """What the verification service said about one identifier.

    Attributes:
        valid: True if the identifier exists on the remote side
        display: Display form of the identifier, if the service sent one
        is_unmanaged: Account belongs to an unmanaged (viral) tenant
        throttle_status: Non-zero when the service signals throttling
        is_signup_disallowed: Self-service signup is blocked for the domain
    """

    valid: bool
    display: str | None = None
    is_unmanaged: bool = False
    throttle_status: int = 0
    is_signup_disallowed: bool = False


@dataclass(frozen=True, slots=True)
class Outcome:
    """Result of attempting to validate one identifier."""

    identifier: str
    status: OutcomeStatus
    verdict: Verdict | None = None
    error: str | None = None
    error_type: str | None = None

    def __post_init__(self) -> None:
        """Success carries a verdict and no error; failure the opposite."""
        if self.status == OutcomeStatus.SUCCESS:
            if self.verdict is None or self.error is not None:
                raise ValueError(f"Success outcome for {self.identifier!r} must carry a verdict and no error")
        elif self.verdict is not None or self.error is None:
            raise ValueError(f"Failure outcome for {self.identifier!r} must carry an error and no verdict")

    @classmethod
    def success(cls, identifier: str, verdict: Verdict) -> Outcome:
        """Create a successful outcome."""
        return cls(identifier=identifier, status=OutcomeStatus.SUCCESS, verdict=verdict)

    @classmethod
    def failure(cls, identifier: str, error: BaseException | str) -> Outcome:
        """Create a failure outcome from an exception or a message.

        Args:
            identifier: The identifier that could not be validated
            error: The exception raised by the service call, or a description

        Returns:
            Outcome with status FAILURE
        """
        if isinstance(error, BaseException):
            return cls(
                identifier=identifier,
                status=OutcomeStatus.FAILURE,
                error=str(error) or type(error).__name__,
                error_type=type(error).__name__,
            )
        return cls(identifier=identifier, status=OutcomeStatus.FAILURE, error=error)

    @property
    def succeeded(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS

    @property
    def is_valid(self) -> bool:
        """True only for a success with a positive verdict."""
        return self.verdict is not None and self.verdict.valid

    def to_record(self) -> dict[str, Any]:
        """Render the structured record written by the sink.

        Optional metadata is omitted when empty, false or zero so records
        stay compact for the common "not found" case.

        Raises:
            ValueError: If called on a failure outcome.
        """
        if self.verdict is None:
            raise ValueError(f"Failure outcome for {self.identifier!r} has no record")

        record: dict[str, Any] = {"email": self.identifier, "valid": self.verdict.valid}
        if self.verdict.display:
            record["display"] = self.verdict.display
        if self.verdict.is_unmanaged:
            record["is_unmanaged"] = True
        if self.verdict.throttle_status:
            record["throttle_status"] = self.verdict.throttle_status
        if self.verdict.is_signup_disallowed:
            record["is_signup_disallowed"] = True
        return record

# tests/unit/contracts/test_results.py
"""Tests for Verdict/Outcome and the records rendered from them."""

import pytest

from idcheck.contracts.enums import OutcomeStatus
from idcheck.contracts.errors import ValidationServiceError
from idcheck.contracts.results import Outcome, Verdict


class TestOutcomeFactories:
    def test_success(self) -> None:
        outcome = Outcome.success("a@x.com", Verdict(valid=True))

        assert outcome.status == OutcomeStatus.SUCCESS
        assert outcome.succeeded
        assert outcome.is_valid
        assert outcome.error is None

    def test_success_with_negative_verdict_is_not_valid(self) -> None:
        outcome = Outcome.success("b@x.com", Verdict(valid=False))

        assert outcome.succeeded
        assert not outcome.is_valid

    def test_failure_from_exception(self) -> None:
        outcome = Outcome.failure("a@x.com", ValidationServiceError("HTTP 503", status_code=503))

        assert outcome.status == OutcomeStatus.FAILURE
        assert not outcome.succeeded
        assert not outcome.is_valid
        assert outcome.error == "HTTP 503"
        assert outcome.error_type == "ValidationServiceError"

    def test_failure_from_exception_without_message(self) -> None:
        """An empty exception message falls back to the exception type name."""
        outcome = Outcome.failure("a@x.com", TimeoutError())

        assert outcome.error == "TimeoutError"

    def test_failure_from_message(self) -> None:
        outcome = Outcome.failure("a@x.com", "gave up")

        assert outcome.error == "gave up"
        assert outcome.error_type is None


class TestOutcomeValidation:
    def test_success_without_verdict_rejected(self) -> None:
        with pytest.raises(ValueError, match="must carry a verdict"):
            Outcome(identifier="a", status=OutcomeStatus.SUCCESS)

    def test_success_with_error_rejected(self) -> None:
        with pytest.raises(ValueError, match="must carry a verdict"):
            Outcome(identifier="a", status=OutcomeStatus.SUCCESS, verdict=Verdict(valid=True), error="x")

    def test_failure_with_verdict_rejected(self) -> None:
        with pytest.raises(ValueError, match="must carry an error"):
            Outcome(identifier="a", status=OutcomeStatus.FAILURE, verdict=Verdict(valid=True), error="x")

    def test_failure_without_error_rejected(self) -> None:
        with pytest.raises(ValueError, match="must carry an error"):
            Outcome(identifier="a", status=OutcomeStatus.FAILURE)


class TestToRecord:
    def test_minimal_record(self) -> None:
        record = Outcome.success("b@x.com", Verdict(valid=False)).to_record()

        assert record == {"email": "b@x.com", "valid": False}

    def test_metadata_included_when_set(self) -> None:
        verdict = Verdict(
            valid=True,
            display="A@X.com",
            is_unmanaged=True,
            throttle_status=1,
            is_signup_disallowed=True,
        )

        record = Outcome.success("a@x.com", verdict).to_record()

        assert record == {
            "email": "a@x.com",
            "valid": True,
            "display": "A@X.com",
            "is_unmanaged": True,
            "throttle_status": 1,
            "is_signup_disallowed": True,
        }

    def test_failure_has_no_record(self) -> None:
        with pytest.raises(ValueError, match="has no record"):
            Outcome.failure("a@x.com", "down").to_record()

"""Validation service protocol."""

from __future__ import annotations

from typing import Protocol

from idcheck.contracts.results import Verdict


class ValidationService(Protocol):
    """Answers one identifier per call.

    Implementations must be safe to call from several worker threads
    at once, and must raise ValidationServiceError for every kind of
    call failure (timeout, transport error, unexpected status,
    malformed response). The dispatch core treats all of them alike.
    """

    def check(self, identifier: str, *, timeout: float) -> Verdict:
        """Validate one identifier.

        Args:
            identifier: The identifier to look up
            timeout: Upper bound for the call in seconds

        Returns:
            Verdict with validity flag and optional metadata

        Raises:
            ValidationServiceError: If the call failed for any reason.
        """
        ...

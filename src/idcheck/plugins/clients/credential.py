"""HTTP client for the credential-type lookup endpoint.

POSTs {"Username": identifier} and reads the JSON answer:

    {
        "Username": "a@x.com",
        "Display": "a@x.com",
        "IfExistsResult": 0,
        "IsUnmanaged": false,
        "ThrottleStatus": 0,
        "IsSignupDisallowed": false
    }

IfExistsResult == 0 means the account exists. Every other value, including
a missing field, is treated as "not valid".
"""

from __future__ import annotations

import json
from json import JSONDecodeError
from types import TracebackType
from typing import Any

import httpx
import structlog

from idcheck import __version__
from idcheck.contracts.errors import ValidationServiceError
from idcheck.contracts.results import Verdict
from idcheck.core.config import DEFAULT_SERVICE_URL

logger = structlog.get_logger(__name__)

# IfExistsResult value meaning "account exists"
_EXISTS = 0


def parse_verdict(payload: Any) -> Verdict:
    """Map a decoded response body to a Verdict.

    Raises:
        ValidationServiceError: If the body is not a JSON object or a
            field has the wrong type.
    """
    if not isinstance(payload, dict):
        raise ValidationServiceError(f"Expected JSON object, got {type(payload).__name__}")

    exists = payload.get("IfExistsResult")
    display = payload.get("Display")
    throttle = payload.get("ThrottleStatus", 0)
    if exists is not None and (not isinstance(exists, int) or isinstance(exists, bool)):
        raise ValidationServiceError(f"IfExistsResult must be an integer, got {exists!r}")
    if display is not None and not isinstance(display, str):
        raise ValidationServiceError(f"Display must be a string, got {display!r}")
    if not isinstance(throttle, int) or isinstance(throttle, bool):
        raise ValidationServiceError(f"ThrottleStatus must be an integer, got {throttle!r}")

    return Verdict(
        valid=exists == _EXISTS,
        display=display or None,
        is_unmanaged=payload.get("IsUnmanaged") is True,
        throttle_status=throttle,
        is_signup_disallowed=payload.get("IsSignupDisallowed") is True,
    )


class CredentialTypeClient:
    """ValidationService backed by the credential-type endpoint.

    Holds one httpx.Client for connection pooling. httpx.Client is
    thread-safe, so a single instance serves every worker. The per-call
    timeout overrides the client default.

    Example:
        with CredentialTypeClient() as client:
            verdict = client.check("a@x.com", timeout=10.0)
    """

    def __init__(
        self,
        url: str = DEFAULT_SERVICE_URL,
        *,
        user_agent: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize client.

        Args:
            url: Endpoint URL
            user_agent: User-Agent header (default: idcheck/<version>)
            transport: Optional httpx transport (tests)
        """
        self._url = url
        self._client = httpx.Client(
            headers={
                "Content-Type": "application/json",
                "User-Agent": user_agent or f"idcheck/{__version__}",
            },
            follow_redirects=False,
            transport=transport,
        )

    @property
    def url(self) -> str:
        return self._url

    def check(self, identifier: str, *, timeout: float) -> Verdict:
        try:
            response = self._client.post(self._url, json={"Username": identifier}, timeout=timeout)
        except httpx.TimeoutException as e:
            raise ValidationServiceError(f"Timed out after {timeout}s: {e}") from e
        except httpx.HTTPError as e:
            raise ValidationServiceError(f"Transport error: {e}") from e

        if response.status_code != httpx.codes.OK:
            raise ValidationServiceError(
                f"Unexpected status {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            payload = json.loads(response.text)
        except JSONDecodeError as e:
            raise ValidationServiceError(f"Malformed response body: {e}", status_code=response.status_code) from e

        verdict = parse_verdict(payload)
        if verdict.throttle_status:
            logger.warning("service signalled throttling", identifier=identifier, throttle_status=verdict.throttle_status)
        return verdict

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> CredentialTypeClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

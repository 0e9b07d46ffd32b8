"""
Per-user authentication token lifecycle.

Each virtual user owns exactly one :class:`CredentialManager`, so the
cached token is never shared between users and needs no locking.

State machine::

    NO_TOKEN --login ok--> VALID
    NO_TOKEN --login failed / no token--> NO_TOKEN
    VALID --probe--> PENDING_VALIDATION --2xx--> VALID
                                        --401/403--> NO_TOKEN (token dropped)
                                        --other--> VALID (soft failure)

A generic failure of the "who-am-I" probe (5xx, timeout) must not
trigger a re-login: doing so would add login traffic that says nothing
about capacity.  Only 401/403 invalidate the token.

Key Concepts Demonstrated:
- Explicit state enum instead of a bare optional token
- Distinguishing authorization failure from transient failure
- Returning outcomes rather than raising, so the caller decides flow
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from sports_load.endpoints import Endpoint, endpoint_path
from sports_load.transport import ApiResponse, EndpointClient

logger = logging.getLogger(__name__)

AUTHORIZATION_FAILURE_CODES = frozenset({401, 403})


class TokenState(str, Enum):
    NO_TOKEN = "no_token"
    PENDING_VALIDATION = "pending_validation"
    VALID = "valid"


class ProbeOutcome(str, Enum):
    """Result of the "who-am-I" probe as seen by the session flow."""

    VALID = "valid"
    INVALID = "invalid"
    FAILED = "failed"


@dataclass(frozen=True)
class ProbeResult:
    outcome: ProbeOutcome
    response: ApiResponse | None = None


def is_authorization_failure(status_code: int) -> bool:
    """Return ``True`` for statuses that mean the token was rejected."""
    return status_code in AUTHORIZATION_FAILURE_CODES


class CredentialManager:
    """
    Owns the cached bearer token of one virtual user.

    Attributes:
        email: Test-account email.
        password: Test-account password.
        token: Current bearer token, or ``None``.
        state: Current :class:`TokenState`.
    """

    def __init__(self, email: str, password: str) -> None:
        self.email = email
        self.password = password
        self.token: str | None = None
        self.state = TokenState.NO_TOKEN

    @property
    def has_token(self) -> bool:
        return self.token is not None

    def login(self, api: EndpointClient) -> bool:
        """
        Exchange credentials for a token and cache it.

        Returns:
            ``True`` if a token is now cached.  A non-2xx response or a
            2xx body without a usable ``token`` leaves the manager in
            ``NO_TOKEN``.
        """
        response = api.call(
            Endpoint.LOGIN,
            endpoint_path(Endpoint.LOGIN),
            method="POST",
            payload={"email": self.email, "password": self.password},
        )
        if not response.ok:
            logger.debug("login failed for %s: status=%s", self.email, response.status_code)
            self.invalidate()
            return False

        body = response.json()
        token = body.get("token") if isinstance(body, dict) else None
        if not isinstance(token, str) or not token:
            logger.debug("login response for %s missing token", self.email)
            self.invalidate()
            return False

        self.token = token
        self.state = TokenState.VALID
        return True

    def probe(self, api: EndpointClient) -> ProbeResult:
        """
        Call the "who-am-I" endpoint with the cached token.

        Returns:
            ``VALID`` on 2xx, ``INVALID`` on 401/403 (token discarded),
            ``FAILED`` on any other failure (token kept).  Probing with
            no cached token is reported as ``INVALID`` without a call.
        """
        if self.token is None:
            return ProbeResult(ProbeOutcome.INVALID)

        self.state = TokenState.PENDING_VALIDATION
        response = api.call(Endpoint.ME, endpoint_path(Endpoint.ME), token=self.token)
        if response.ok:
            self.state = TokenState.VALID
            return ProbeResult(ProbeOutcome.VALID, response)

        if is_authorization_failure(response.status_code):
            logger.info("token rejected for %s (status=%s)", self.email, response.status_code)
            self.invalidate()
            return ProbeResult(ProbeOutcome.INVALID, response)

        self.state = TokenState.VALID
        return ProbeResult(ProbeOutcome.FAILED, response)

    def check_authorized(self, response: ApiResponse) -> bool:
        """
        Inspect the response of an authenticated call.

        Drops the token on 401/403 and returns ``False``; any other
        outcome returns ``True`` and leaves the state untouched.
        """
        if is_authorization_failure(response.status_code):
            logger.info(
                "token rejected on %s for %s (status=%s)",
                response.result.endpoint.value,
                self.email,
                response.status_code,
            )
            self.invalidate()
            return False
        return True

    def invalidate(self) -> None:
        """Forget the cached token so the next iteration logs in again."""
        self.token = None
        self.state = TokenState.NO_TOKEN

"""Bearer token gate for protected operations.

The gate only answers "is this a valid session?". There are no roles: every
protected route applies the same check. Verified claims are handed to the
endpoint as an explicit AuthContext argument rather than stashed on the
request.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from shared.auth.token import TokenError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from shared.auth.models import SessionClaims
    from shared.auth.service import AuthService

logger = structlog.get_logger()

_BEARER_SCHEME = "bearer"


class UnauthorizedReason(StrEnum):
    NO_TOKEN = "no_token"
    INVALID_TOKEN = "invalid_token"


_REASON_MESSAGES = {
    UnauthorizedReason.NO_TOKEN: "Token not provided.",
    UnauthorizedReason.INVALID_TOKEN: "Invalid token.",
}


class UnauthorizedError(Exception):
    """Request rejected by the auth gate."""

    def __init__(self, reason: UnauthorizedReason) -> None:
        super().__init__(_REASON_MESSAGES[reason])
        self.reason = reason


@dataclass(frozen=True)
class AuthContext:
    """Verified identity of the caller for the duration of one request."""

    claims: SessionClaims

    @property
    def account_id(self) -> int:
        return self.claims.account_id

    @property
    def username(self) -> str:
        return self.claims.username


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header value, or None."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != _BEARER_SCHEME:
        return None
    token = token.strip()
    return token or None


def authenticate(headers: Mapping[str, str], auth_service: AuthService) -> AuthContext:
    """Run the gate against request headers. Raises UnauthorizedError on rejection."""
    token = extract_bearer_token(headers.get("authorization"))
    if token is None:
        raise UnauthorizedError(UnauthorizedReason.NO_TOKEN)
    try:
        claims = auth_service.verify_token(token)
    except TokenError as e:
        logger.info("rejected session token", error=type(e).__name__)
        raise UnauthorizedError(UnauthorizedReason.INVALID_TOKEN) from e
    return AuthContext(claims=claims)

"""HMAC-SHA256 signed session tokens.

Tokens are stateless: the server keeps no session table, so any process
holding the secret can verify a token locally. There is no revocation; a
token stays valid until its expiry passes.

Token format: base64url(json_claims_bytes).base64url(hmac_sha256_signature)
"""

import base64
import binascii
import hashlib
import hmac
import json
import math
import time
from dataclasses import asdict

import structlog

from shared.auth.models import SessionClaims

logger = structlog.get_logger()

_TOKEN_PARTS = 2  # base64url(payload).base64url(signature)

SESSION_TTL_SECONDS = 3600  # 1 hour
CLOCK_SKEW_SECONDS = 60


class TokenError(Exception):
    """Session token rejected."""


class MalformedTokenError(TokenError):
    """Bad structure, bad encoding, or signature mismatch."""


class ExpiredTokenError(TokenError):
    """Well-formed and correctly signed, but past its expiry."""


def issue_session_token(
    account_id: int,
    username: str,
    secret: str,
    *,
    ttl_seconds: int = SESSION_TTL_SECONDS,
    now: float | None = None,
) -> str:
    """Create claims expiring ``ttl_seconds`` from now and return the signed token."""
    issued_at = time.time() if now is None else now
    claims = SessionClaims(
        account_id=account_id,
        username=username,
        issued_at=issued_at,
        expires_at=issued_at + ttl_seconds,
    )
    return sign_claims(claims, secret)


def sign_claims(claims: SessionClaims, secret: str) -> str:
    payload_bytes = json.dumps(asdict(claims), sort_keys=True).encode()
    sig = hmac.new(secret.encode(), payload_bytes, hashlib.sha256).digest()
    payload_b64 = base64.urlsafe_b64encode(payload_bytes).decode()
    sig_b64 = base64.urlsafe_b64encode(sig).decode()
    return f"{payload_b64}.{sig_b64}"


def verify_session_token(
    token: str,
    secret: str,
    *,
    ttl_seconds: int = SESSION_TTL_SECONDS,
    now: float | None = None,
) -> SessionClaims:
    """Check signature, structure, and expiry. Return the claims or raise TokenError."""
    parts = token.split(".")
    if len(parts) != _TOKEN_PARTS:
        raise MalformedTokenError("Token must have two parts")

    try:
        payload_bytes = base64.urlsafe_b64decode(parts[0])
        provided_sig = base64.urlsafe_b64decode(parts[1])
    except (ValueError, binascii.Error) as exc:
        raise MalformedTokenError("Token is not valid base64url") from exc

    expected_sig = hmac.new(secret.encode(), payload_bytes, hashlib.sha256).digest()
    if not hmac.compare_digest(provided_sig, expected_sig):
        logger.debug("session token signature mismatch")
        raise MalformedTokenError("Signature mismatch")

    try:
        data = json.loads(payload_bytes)
        claims = SessionClaims(**data)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as exc:
        logger.debug("session token malformed payload")
        raise MalformedTokenError("Malformed claims") from exc

    _check_timestamps(claims, ttl_seconds, time.time() if now is None else now)
    return claims


def _is_finite_number(value: object) -> bool:
    """Check that a value is a finite int or float (excluding bool)."""
    if isinstance(value, bool):
        return False
    if not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _check_timestamps(claims: SessionClaims, ttl_seconds: int, now: float) -> None:
    """Reject impossible claim timestamps as malformed and stale ones as expired."""
    if not _is_finite_number(claims.issued_at) or not _is_finite_number(claims.expires_at):
        raise MalformedTokenError("Non-finite timestamp")

    if claims.issued_at > now + CLOCK_SKEW_SECONDS:
        raise MalformedTokenError("Token issued in the future")

    if claims.expires_at <= claims.issued_at:
        raise MalformedTokenError("Token expires before it was issued")

    if claims.expires_at - claims.issued_at > ttl_seconds + CLOCK_SKEW_SECONDS:
        raise MalformedTokenError("Token lifetime too long")

    if now > claims.expires_at:
        logger.debug("session token expired", username=claims.username)
        raise ExpiredTokenError("Token expired")

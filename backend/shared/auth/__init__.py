"""Credential storage, password hashing, and session tokens."""

from shared.auth.models import Account, SessionClaims
from shared.auth.password import BcryptHasher, PasswordHasher, SimpleHasher, get_hasher
from shared.auth.service import (
    AuthError,
    AuthService,
    CredentialsRequiredError,
    DuplicateUsernameError,
    InvalidCredentialsError,
)
from shared.auth.settings import AuthSettings
from shared.auth.token import (
    SESSION_TTL_SECONDS,
    ExpiredTokenError,
    MalformedTokenError,
    TokenError,
    issue_session_token,
    verify_session_token,
)

__all__ = [
    "SESSION_TTL_SECONDS",
    "Account",
    "AuthError",
    "AuthService",
    "AuthSettings",
    "BcryptHasher",
    "CredentialsRequiredError",
    "DuplicateUsernameError",
    "ExpiredTokenError",
    "InvalidCredentialsError",
    "MalformedTokenError",
    "PasswordHasher",
    "SessionClaims",
    "SimpleHasher",
    "TokenError",
    "get_hasher",
    "issue_session_token",
    "verify_session_token",
]

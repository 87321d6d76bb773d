"""Auth service coordinating registration, login, and session token checks."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from shared.auth.password import BCRYPT_MAX_PASSWORD_BYTES
from shared.auth.token import SESSION_TTL_SECONDS, issue_session_token, verify_session_token

if TYPE_CHECKING:
    from shared.auth.models import Account, SessionClaims
    from shared.auth.password import PasswordHasher
    from shared.dal.account_repository import AccountRepository

logger = structlog.get_logger()

_PLACEHOLDER_PASSWORD = "placeholder-password-never-matches"  # noqa: S105


class AuthError(Exception):
    """Authentication or registration failure."""


class CredentialsRequiredError(AuthError):
    """Username or password missing, blank, or unusable."""


class DuplicateUsernameError(AuthError):
    """Registration attempted for a username that already exists."""


class InvalidCredentialsError(AuthError):
    """Unknown username or wrong password. The two cases are deliberately not distinguished."""


class AuthService:
    """Coordinate account registration, credential checks, and session tokens."""

    def __init__(
        self,
        account_repo: AccountRepository,
        *,
        password_hasher: PasswordHasher,
        token_secret: str,
        token_ttl_seconds: int = SESSION_TTL_SECONDS,
    ) -> None:
        if not token_secret:
            raise ValueError("token_secret must not be empty")
        self._account_repo = account_repo
        self._hasher = password_hasher
        self._token_secret = token_secret
        self._token_ttl_seconds = token_ttl_seconds
        self._placeholder_hash: str | None = None

    async def register(self, username: str, password: str) -> Account:
        """Create an account. The store's uniqueness constraint rejects duplicates."""
        _validate_credentials(username, password)
        password_hash = await self._hasher.hash(password)
        try:
            account = await self._account_repo.create_account(username, password_hash)
        except ValueError as e:
            raise DuplicateUsernameError(str(e)) from e
        logger.info("account registered", username=username)
        return account

    async def verify_credentials(self, username: str, password: str) -> Account | None:
        """Return the account when the password matches, otherwise None."""
        account = await self._account_repo.get_by_username(username)
        if account is None:
            # Unknown usernames cost one hash check, like a wrong password.
            await self._hasher.verify(password, await self._get_placeholder_hash())
            return None
        if not await self._hasher.verify(password, account.password_hash):
            return None
        return account

    async def _get_placeholder_hash(self) -> str:
        if self._placeholder_hash is None:
            self._placeholder_hash = await self._hasher.hash(_PLACEHOLDER_PASSWORD)
        return self._placeholder_hash

    async def login(self, username: str, password: str) -> str:
        """Check credentials and return a signed session token."""
        _validate_credentials(username, password)
        account = await self.verify_credentials(username, password)
        if account is None:
            logger.info("login rejected")
            raise InvalidCredentialsError("Invalid credentials")
        return self.issue_token(account)

    def issue_token(self, account: Account, *, now: float | None = None) -> str:
        return issue_session_token(
            account.account_id,
            account.username,
            self._token_secret,
            ttl_seconds=self._token_ttl_seconds,
            now=now,
        )

    def verify_token(self, token: str, *, now: float | None = None) -> SessionClaims:
        """Return the claims of a valid token. Raises TokenError otherwise."""
        return verify_session_token(token, self._token_secret, ttl_seconds=self._token_ttl_seconds, now=now)


def _validate_credentials(username: str, password: str) -> None:
    """Both values must be non-empty; the password must fit bcrypt's input limit."""
    if not username or not password:
        raise CredentialsRequiredError("Username and password are required")
    if len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
        raise CredentialsRequiredError(f"Password must not exceed {BCRYPT_MAX_PASSWORD_BYTES} bytes when encoded")

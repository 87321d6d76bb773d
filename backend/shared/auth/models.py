"""Account and session token models for authentication."""

from dataclasses import dataclass

from pydantic import BaseModel


class Account(BaseModel, frozen=True):
    """Registered account stored in the account repository."""

    account_id: int
    username: str
    password_hash: str  # bcrypt hash, never the plaintext


@dataclass
class SessionClaims:
    """Payload carried inside a signed session token."""

    account_id: int
    username: str
    issued_at: float  # time.time()
    expires_at: float  # issued_at + TTL

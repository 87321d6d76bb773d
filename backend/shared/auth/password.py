"""Password hashing for account credentials.

Two implementations share the PasswordHasher protocol:

- BcryptHasher: salted bcrypt with a configurable cost factor. Hashing is
  CPU-bound, so both hash and verify run in a worker thread via anyio and
  never stall the event loop while other requests are in flight.
- SimpleHasher: unsalted SHA-256 behind a "simple$" prefix. Instant, and
  only meant for tests.
"""

from __future__ import annotations

import hashlib
from typing import Protocol, runtime_checkable

import bcrypt
from anyio import to_thread

BCRYPT_MAX_PASSWORD_BYTES = 72
DEFAULT_BCRYPT_ROUNDS = 10


@runtime_checkable
class PasswordHasher(Protocol):
    """Hash and verify passwords."""

    async def hash(self, plain: str) -> str: ...

    async def verify(self, plain: str, hashed: str) -> bool: ...


class BcryptHasher:
    """Production hasher: bcrypt with a fresh random salt per password."""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self._rounds = rounds

    async def hash(self, plain: str) -> str:
        encoded = plain.encode("utf-8")
        if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must not exceed {BCRYPT_MAX_PASSWORD_BYTES} bytes when encoded")
        salt = bcrypt.gensalt(rounds=self._rounds)
        hashed = await to_thread.run_sync(bcrypt.hashpw, encoded, salt)
        return hashed.decode("utf-8")

    async def verify(self, plain: str, hashed: str) -> bool:
        """Compare in constant time. Malformed or oversized input is a mismatch, not an error."""
        encoded_plain = plain.encode("utf-8")
        if len(encoded_plain) > BCRYPT_MAX_PASSWORD_BYTES:
            return False
        try:
            return await to_thread.run_sync(bcrypt.checkpw, encoded_plain, hashed.encode("utf-8"))
        except ValueError:
            return False


_SIMPLE_PREFIX = "simple$"


class SimpleHasher:
    """Fast SHA-256 hasher for tests. Not suitable for production use."""

    async def hash(self, plain: str) -> str:
        return _SIMPLE_PREFIX + hashlib.sha256(plain.encode("utf-8")).hexdigest()

    async def verify(self, plain: str, hashed: str) -> bool:
        if not hashed.startswith(_SIMPLE_PREFIX):
            return False
        return hashed == await self.hash(plain)


def get_hasher(name: str = "bcrypt", *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> PasswordHasher:
    """Return a PasswordHasher by name ("bcrypt" or "simple")."""
    if name == "bcrypt":
        return BcryptHasher(rounds=rounds)
    if name == "simple":
        return SimpleHasher()
    raise ValueError(f"Unknown password hasher: {name!r}")

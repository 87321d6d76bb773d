"""SQLite-backed account repository."""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING

import structlog

from shared.auth.models import Account
from shared.dal.account_repository import AccountRepository
from shared.dal.errors import StorageError

if TYPE_CHECKING:
    from shared.db.connection import Database

logger = structlog.get_logger()


class SqliteAccountRepository(AccountRepository):
    """SQLite implementation of AccountRepository.

    Registration is a single INSERT: the UNIQUE constraint on ``username``
    decides which of two concurrent registrations wins, so there is no
    window between an existence check and the write.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    async def create_account(self, username: str, password_hash: str) -> Account:
        """Insert an account. Raises ValueError when the username is already taken."""
        return await self._db.run(self._insert_account, username, password_hash)

    async def get_by_username(self, username: str) -> Account | None:
        """Look up an account by exact username."""
        return await self._db.run(self._select_by_username, username)

    def _insert_account(self, username: str, password_hash: str) -> Account:
        conn = self._db.connection
        try:
            cursor = conn.execute(
                "INSERT INTO users (username, password) VALUES (?, ?)",
                (username, password_hash),
            )
            conn.commit()
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            if "users.username" in str(exc).lower():
                raise ValueError(f"Username '{username}' already taken") from exc
            raise StorageError(str(exc)) from exc  # pragma: no cover
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageError("Failed to create account") from exc
        return Account(account_id=cursor.lastrowid, username=username, password_hash=password_hash)

    def _select_by_username(self, username: str) -> Account | None:
        try:
            row = self._db.connection.execute(
                "SELECT id, username, password FROM users WHERE username = ?",
                (username,),
            ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError("Failed to look up account") from exc
        if row is None:
            return None
        return Account(account_id=row["id"], username=row["username"], password_hash=row["password"])

"""SQLite database connection and schema management."""

from __future__ import annotations

import asyncio
import os
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from anyio import to_thread

if TYPE_CHECKING:
    from collections.abc import Callable

logger = structlog.get_logger()

MEMORY_PATH = ":memory:"

_DB_FILE_PERMISSIONS = 0o600

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    password TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS mercadorias (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    price REAL NOT NULL,
    height REAL NOT NULL,
    width REAL NOT NULL,
    status TEXT NOT NULL,
    image TEXT
);
"""


class Database:
    """Explicit handle to the single SQLite store shared by all repositories.

    Pass ``":memory:"`` for an isolated, non-persistent store (tests).
    AUTOINCREMENT keys guarantee identities are never reused, even after
    the newest row is removed by hand.

    All statements go through ``run``, which executes them in a worker thread
    one at a time. A transaction on the shared connection therefore never
    interleaves with another caller's, and a locked file never stalls the
    event loop.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = str(path)
        self._conn: sqlite3.Connection | None = None
        self._lock = asyncio.Lock()

    @property
    def path(self) -> str:
        return self._path

    @property
    def is_memory(self) -> bool:
        return self._path == MEMORY_PATH

    @property
    def connection(self) -> sqlite3.Connection:
        """Return the active connection or raise if disconnected."""
        if self._conn is None:
            raise RuntimeError("Database is not connected")
        return self._conn

    async def run(self, fn: Callable[..., Any], *args: Any) -> Any:  # noqa: ANN401
        """Call ``fn(*args)`` in a worker thread while holding the connection lock."""
        async with self._lock:
            return await to_thread.run_sync(fn, *args)

    def connect(self) -> None:
        """Open the database, apply pragmas, create schema, and harden file permissions."""
        if not self.is_memory:
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(self._path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        if not self.is_memory:
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA busy_timeout=5000")
        self._conn.executescript(_SCHEMA_SQL)

        self._harden_permissions()
        logger.info("connected to database", path=self._path)

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _harden_permissions(self) -> None:
        """Owner-only permissions on the DB file and its WAL/SHM siblings (best effort).

        They hold password hashes.
        """
        if self.is_memory or os.name != "posix":  # pragma: no cover
            return
        for suffix in ("", "-wal", "-shm"):
            p = Path(self._path + suffix)
            if p.exists():
                try:
                    p.chmod(_DB_FILE_PERMISSIONS)
                except OSError:
                    logger.warning("could not set file permissions", permissions=oct(_DB_FILE_PERMISSIONS), path=str(p))

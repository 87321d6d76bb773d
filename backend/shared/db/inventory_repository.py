"""SQLite-backed inventory repository."""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING

import structlog

from shared.dal.errors import StorageError
from shared.dal.inventory_repository import InventoryRepository
from shared.dal.models import InventoryEntry

if TYPE_CHECKING:
    from shared.dal.models import NewInventoryEntry
    from shared.db.connection import Database

logger = structlog.get_logger()

_COLUMNS = ("name", "price", "height", "width", "status", "image")


class SqliteInventoryRepository(InventoryRepository):
    """SQLite implementation of InventoryRepository.

    Identities come from the table's AUTOINCREMENT key, read back via
    ``lastrowid`` in the same locked call as the INSERT so concurrent creates
    can never observe each other's id.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    async def create_entry(self, entry: NewInventoryEntry) -> InventoryEntry:
        """Insert an entry and return it with its newly assigned id."""
        values = entry.model_dump(include=set(_COLUMNS))
        entry_id = await self._db.run(self._insert_entry, values)
        logger.debug("inserted inventory entry", entry_id=entry_id)
        return InventoryEntry(id=entry_id, **values)

    async def list_entries(self) -> list[InventoryEntry]:
        """Return every entry in insertion order."""
        rows = await self._db.run(self._select_all)
        return [InventoryEntry.model_validate(dict(row)) for row in rows]

    def _insert_entry(self, values: dict) -> int:
        conn = self._db.connection
        try:
            cursor = conn.execute(
                f"INSERT INTO mercadorias ({', '.join(_COLUMNS)}) VALUES ({', '.join('?' * len(_COLUMNS))})",  # noqa: S608
                tuple(values[c] for c in _COLUMNS),
            )
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageError("Failed to create inventory entry") from exc
        return cursor.lastrowid

    def _select_all(self) -> list[sqlite3.Row]:
        try:
            return self._db.connection.execute(
                "SELECT id, name, price, height, width, status, image FROM mercadorias ORDER BY id",
            ).fetchall()
        except sqlite3.Error as exc:
            raise StorageError("Failed to list inventory entries") from exc

"""Tests for Database connection and schema."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from shared.db.connection import Database

if TYPE_CHECKING:
    from pathlib import Path


def _table_names(db: Database) -> list[str]:
    rows = db.connection.execute("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name").fetchall()
    return [r[0] for r in rows]


class TestConnect:
    def test_creates_schema_and_connects(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()

        table_names = _table_names(db)
        assert "users" in table_names
        assert "mercadorias" in table_names
        db.close()

    def test_memory_database(self) -> None:
        db = Database(":memory:")
        db.connect()

        assert db.is_memory
        assert "users" in _table_names(db)
        db.close()

    def test_memory_databases_are_isolated(self) -> None:
        first = Database(":memory:")
        second = Database(":memory:")
        first.connect()
        second.connect()

        first.connection.execute("INSERT INTO users (username, password) VALUES ('a', 'x')")

        assert second.connection.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 0
        first.close()
        second.close()

    def test_reconnect_keeps_data(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        db.connection.execute("INSERT INTO users (username, password) VALUES ('alice', 'x')")
        db.connection.commit()
        db.close()
        db.connect()

        assert db.connection.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 1
        db.close()

    def test_connection_raises_when_disconnected(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        with pytest.raises(RuntimeError, match="not connected"):
            _ = db.connection

    def test_connection_raises_after_close(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        db.close()
        with pytest.raises(RuntimeError, match="not connected"):
            _ = db.connection

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "nested" / "dir" / "test.db")
        db.connect()
        assert (tmp_path / "nested" / "dir" / "test.db").exists()
        db.close()

    def test_close_is_idempotent(self) -> None:
        db = Database(":memory:")
        db.connect()
        db.close()
        db.close()


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions only")
class TestPermissions:
    def test_db_file_has_restricted_permissions(self, tmp_path: Path) -> None:
        db_path = tmp_path / "test.db"
        db = Database(db_path)
        db.connect()

        assert db_path.stat().st_mode & 0o777 == 0o600
        db.close()

    def test_harden_permissions_warns_on_failure(self, tmp_path: Path) -> None:
        """Permission hardening logs a warning on failure instead of raising."""
        db = Database(tmp_path / "test.db")
        with patch("pathlib.Path.chmod", side_effect=OSError("permission denied")):
            db.connect()
        assert db.connection is not None
        db.close()

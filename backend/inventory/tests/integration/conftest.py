"""Shared fixtures and helpers for inventory integration tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from starlette.testclient import TestClient

from inventory.server.app import create_app
from inventory.server.settings import InventoryServerSettings
from shared.auth.settings import AuthSettings

if TYPE_CHECKING:
    from starlette.applications import Starlette

TEST_SECRET = "integration-secret"
TEST_PASSWORD = "securepass123"


def make_app(tmp_path, **settings_kwargs) -> Starlette:
    settings_kwargs.setdefault("ws_allowed_origin", None)
    return create_app(
        settings=InventoryServerSettings(
            upload_dir=str(tmp_path / "uploads"),
            log_dir=None,
            **settings_kwargs,
        ),
        auth_settings=AuthSettings(
            token_secret=TEST_SECRET,
            database_path=str(tmp_path / "test.db"),
            password_hasher="simple",
        ),
    )


@pytest.fixture
def app(tmp_path):
    return make_app(tmp_path)


@pytest.fixture
def client(app):
    # Entering the client runs the lifespan and keeps one event loop for both
    # HTTP requests and websocket sessions, so broadcasts reach open sockets.
    with TestClient(app) as c:
        yield c


def register_and_login(client: TestClient, username: str = "alice") -> dict[str, str]:
    """Register an account, log in, and return the Authorization header for it."""
    client.post("/register", json={"username": username, "password": TEST_PASSWORD})
    response = client.post("/login", json={"username": username, "password": TEST_PASSWORD})
    return {"Authorization": f"Bearer {response.json()['token']}"}


def entry_form(**overrides) -> dict[str, str]:
    form = {"name": "Chair", "price": "19.90", "height": "90", "width": "45", "status": "available"}
    form.update(overrides)
    return form

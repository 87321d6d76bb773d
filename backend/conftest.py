"""Root conftest: test environment and structlog wiring shared by every package."""

from pathlib import Path

import pytest
import structlog
from dotenv import load_dotenv

from shared.logging import configure_structlog

load_dotenv(Path(__file__).resolve().parent.parent / ".env.tests")

# No handlers are installed here; caplog attaches its own to the root logger.
configure_structlog()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Prevent bound context (request ids, usernames) leaking between tests."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture(autouse=True)
def _isolate_settings_env(monkeypatch):
    """Keep a developer's local INVENTORY_* overrides out of the test run."""
    for name in ("INVENTORY_UPLOAD_DIR", "INVENTORY_LOG_DIR", "INVENTORY_WS_ALLOWED_ORIGIN"):
        monkeypatch.delenv(name, raising=False)

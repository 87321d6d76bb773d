from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

import structlog
import uvicorn
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.routing import Mount, Route, WebSocketRoute
from starlette.staticfiles import StaticFiles

from inventory.auth.policy import protected_api, public_route, validate_route_auth_policy
from inventory.entries.intake import AttachmentIntake
from inventory.entries.pipeline import MutationPipeline
from inventory.events.broadcaster import EventBroadcaster
from inventory.events.websocket import observer_websocket
from inventory.server.settings import InventoryServerSettings
from inventory.views import create_entry, list_entries, login, register
from shared.auth import AuthService, AuthSettings, get_hasher
from shared.db import Database, SqliteAccountRepository, SqliteInventoryRepository
from shared.logging import setup_logging
from shared.storage import LocalAttachmentStorage

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from shared.auth.password import PasswordHasher


def create_app(
    settings: InventoryServerSettings | None = None,
    auth_settings: AuthSettings | None = None,  # required in production (via get_app)
    *,
    db: Database | None = None,
    password_hasher: PasswordHasher | None = None,
) -> Starlette:
    """Wire storage, auth, pipeline, and broadcaster into a Starlette app.

    ``db`` and ``password_hasher`` may be injected (tests); otherwise they are
    built from ``auth_settings``.
    """
    if settings is None:  # pragma: no cover
        settings = InventoryServerSettings()
    if auth_settings is None:  # pragma: no cover
        auth_settings = AuthSettings()  # type: ignore[call-arg]

    attachment_storage = LocalAttachmentStorage(settings.upload_dir)
    # StaticFiles raises RuntimeError on its first request if the directory is missing.
    attachment_storage.ensure_directory()

    routes = [
        Route("/register", public_route(register), methods=["POST"], name="register"),
        Route("/login", public_route(login), methods=["POST"], name="login"),
        Route("/mercadorias", protected_api(create_entry), methods=["POST"], name="create_entry"),
        Route("/mercadorias", public_route(list_entries), methods=["GET"], name="list_entries"),
        WebSocketRoute("/ws", observer_websocket, name="observer_websocket"),
        Mount(
            "/uploads",
            app=StaticFiles(directory=str(attachment_storage.directory), check_dir=False),
            name="uploads",
        ),
    ]
    validate_route_auth_policy(routes)

    if db is None:
        db = Database(auth_settings.database_path)
        db.connect()
    if password_hasher is None:
        password_hasher = get_hasher(auth_settings.password_hasher, rounds=auth_settings.bcrypt_rounds)

    auth_service = AuthService(
        SqliteAccountRepository(db),
        password_hasher=password_hasher,
        token_secret=auth_settings.token_secret,
        token_ttl_seconds=auth_settings.token_ttl_seconds,
    )
    inventory_repo = SqliteInventoryRepository(db)
    broadcaster = EventBroadcaster()
    pipeline = MutationPipeline(inventory_repo, AttachmentIntake(attachment_storage), broadcaster)

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        yield
        await broadcaster.flush()
        await broadcaster.close_all()
        db.close()

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )

    app.state.db = db
    app.state.settings = settings
    app.state.auth_settings = auth_settings
    app.state.auth_service = auth_service
    app.state.inventory_repo = inventory_repo
    app.state.attachment_storage = attachment_storage
    app.state.broadcaster = broadcaster
    app.state.pipeline = pipeline

    logger.info("inventory server ready", upload_dir=str(attachment_storage.directory))
    return app


def get_app() -> Starlette:  # pragma: no cover
    """Factory function for uvicorn --factory inventory.server.app:get_app.

    Raises pydantic ValidationError when the token secret is not configured.
    """
    s = InventoryServerSettings()
    setup_logging(log_dir=s.log_dir)
    auth = AuthSettings()  # ty: ignore[missing-argument]
    return create_app(settings=s, auth_settings=auth)


def main() -> None:  # pragma: no cover
    """Console entry point: refuse to start without a token secret, then serve."""
    settings = InventoryServerSettings()
    try:
        app = get_app()
    except ValidationError as exc:
        logger.critical("invalid configuration, refusing to start", errors=exc.errors(include_url=False))
        raise SystemExit(1) from exc
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)

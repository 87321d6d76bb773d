"""WebSocket handler for real-time inventory observers."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError
from starlette.websockets import WebSocket, WebSocketDisconnect

from inventory.events.messages import (
    EVENT_ERROR,
    EVENT_NEW_MESSAGE,
    EVENT_PONG,
    EVENT_WELCOME,
    WELCOME_TEXT,
    PingMessage,
    SendMessage,
    parse_client_message,
    server_event,
)

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

    from inventory.events.broadcaster import EventBroadcaster
    from inventory.server.settings import InventoryServerSettings

logger = structlog.get_logger()


async def observer_websocket(websocket: WebSocket) -> None:
    """Register the connection as an observer until it disconnects."""
    if not _check_origin(websocket):
        await websocket.close(code=4003, reason="forbidden_origin")
        return

    await websocket.accept()
    broadcaster: EventBroadcaster = websocket.app.state.broadcaster
    connection_id = str(uuid.uuid4())
    log = logger.bind(connection_id=connection_id)

    await websocket.send_json(server_event(EVENT_WELCOME, WELCOME_TEXT))
    broadcaster.add(connection_id, websocket)
    log.info("observer connected", observers=broadcaster.observer_count)

    try:
        await _message_loop(websocket, connection_id, broadcaster, log)
    except WebSocketDisconnect:
        pass
    except Exception:  # pragma: no cover
        log.exception("unexpected error in observer websocket")
    finally:
        broadcaster.remove(connection_id)
        log.info("observer disconnected", observers=broadcaster.observer_count)


def _check_origin(websocket: WebSocket) -> bool:
    settings: InventoryServerSettings = websocket.app.state.settings
    if not settings.ws_allowed_origin:
        return True
    return websocket.headers.get("origin", "") == settings.ws_allowed_origin


async def _message_loop(
    websocket: WebSocket,
    connection_id: str,
    broadcaster: EventBroadcaster,
    log: BoundLogger,
) -> None:
    while True:
        raw = await websocket.receive_text()
        try:
            message = parse_client_message(raw)
        except (ValueError, ValidationError) as e:
            await broadcaster.send_to(connection_id, EVENT_ERROR, str(e))
            continue

        if isinstance(message, SendMessage):
            log.info("message received")
            broadcaster.broadcast(EVENT_NEW_MESSAGE, message.data)
        elif isinstance(message, PingMessage):
            await broadcaster.send_to(connection_id, EVENT_PONG)

"""Event names and typed client messages for the real-time channel.

Every frame in either direction is a JSON object ``{"type": ..., "data": ...}``.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter

_MAX_WS_MESSAGE_SIZE = 4096

# server -> client
EVENT_WELCOME = "message"
EVENT_NEW_ENTRY = "newMercadoria"
EVENT_NEW_MESSAGE = "newMessage"
EVENT_PONG = "pong"
EVENT_ERROR = "error"

WELCOME_TEXT = "Welcome to the inventory WebSocket server!"


class SendMessage(BaseModel):
    """Arbitrary client payload to be echoed to every observer."""

    type: Literal["sendMessage"]
    data: Any = None


class PingMessage(BaseModel):
    type: Literal["ping"]


ClientMessage = Annotated[SendMessage | PingMessage, Field(discriminator="type")]

_client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


def server_event(event_type: str, data: Any = None) -> dict[str, Any]:  # noqa: ANN401
    return {"type": event_type, "data": data}


def parse_client_message(raw: str) -> SendMessage | PingMessage:
    """Parse and validate a raw JSON string into a typed client message."""
    byte_len = len(raw.encode("utf-8"))
    if byte_len > _MAX_WS_MESSAGE_SIZE:
        raise ValueError(f"Message too large ({byte_len} bytes, max {_MAX_WS_MESSAGE_SIZE})")
    data = json.loads(raw)
    return _client_message_adapter.validate_python(data)

"""Fan-out of change events to every connected observer."""

from __future__ import annotations

import asyncio
import contextlib
import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog
from starlette.websockets import WebSocketDisconnect

from inventory.events.messages import server_event

if TYPE_CHECKING:
    from starlette.websockets import WebSocket

logger = structlog.get_logger()

DEFAULT_SEND_TIMEOUT_SECONDS = 5.0

_STALLED_CLOSE_CODE = 1011


@dataclass
class _Observer:
    websocket: WebSocket
    # One frame at a time per socket: broadcasts and direct replies queue here.
    send_lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class EventBroadcaster:
    """Track live observer connections and deliver events to all of them.

    Delivery is best-effort: each send runs as its own task, so ``broadcast``
    returns immediately and a slow or dead observer cannot hold up the caller
    or the other observers. Nothing is queued for observers that join later.

    All methods run on the event loop thread. Membership changes are plain
    dict operations with no ``await`` in between, and ``broadcast`` works on a
    snapshot, so joins and leaves never interleave with a fan-out half way.

    Sends to one socket are serialized by its lock. A send that misses the
    timeout may have been cut off mid-frame, so that observer is dropped and
    its socket closed rather than written to again.
    """

    def __init__(self, send_timeout: float = DEFAULT_SEND_TIMEOUT_SECONDS) -> None:
        self._observers: dict[str, _Observer] = {}  # connection_id -> observer
        self._pending: set[asyncio.Task[None]] = set()
        self._send_timeout = send_timeout

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def add(self, connection_id: str, websocket: WebSocket) -> None:
        self._observers[connection_id] = _Observer(websocket)

    def remove(self, connection_id: str) -> bool:
        """Drop an observer. Return True if it was connected."""
        return self._observers.pop(connection_id, None) is not None

    def broadcast(self, event_type: str, data: Any = None) -> int:  # noqa: ANN401
        """Schedule delivery of an event to every current observer.

        Return the number of observers the event was addressed to.
        """
        payload = json.dumps(server_event(event_type, data))
        recipients = list(self._observers.items())
        for connection_id, observer in recipients:
            task = asyncio.create_task(self._deliver(connection_id, observer, payload))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        logger.debug("broadcast scheduled", event_type=event_type, recipients=len(recipients))
        return len(recipients)

    async def send_to(self, connection_id: str, event_type: str, data: Any = None) -> bool:  # noqa: ANN401
        """Send an event to one observer and wait for it. Return True on success."""
        observer = self._observers.get(connection_id)
        if observer is None:
            return False
        return await self._deliver(connection_id, observer, json.dumps(server_event(event_type, data)))

    async def _deliver(self, connection_id: str, observer: _Observer, payload: str) -> bool:
        try:
            async with asyncio.timeout(self._send_timeout), observer.send_lock:
                await observer.websocket.send_text(payload)
        except TimeoutError:
            logger.info("observer send timed out, dropping observer", connection_id=connection_id)
            await self._drop_stalled(connection_id, observer)
            return False
        except (OSError, RuntimeError, WebSocketDisconnect) as e:
            logger.debug("dropped event for observer", connection_id=connection_id, error=type(e).__name__)
            return False
        return True

    async def _drop_stalled(self, connection_id: str, observer: _Observer) -> None:
        if self._observers.get(connection_id) is observer:
            del self._observers[connection_id]
        with contextlib.suppress(OSError, RuntimeError, TimeoutError):
            async with asyncio.timeout(self._send_timeout):
                await observer.websocket.close(code=_STALLED_CLOSE_CODE, reason="send_timeout")

    async def flush(self) -> None:
        """Wait until every scheduled delivery has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close_all(self, code: int = 1001, reason: str = "") -> None:
        """Close every observer connection (server shutdown)."""
        observers = list(self._observers.values())
        self._observers.clear()
        for observer in observers:
            with contextlib.suppress(OSError, RuntimeError):
                await observer.websocket.close(code=code, reason=reason)

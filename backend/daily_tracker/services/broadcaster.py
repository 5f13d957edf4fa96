"""
Daily Tracker Backend — WebSocket Change Broadcaster
======================================================

What:  Pushes `{"event": "<kind>:<action>", "data": …}` to every connected
       WebSocket client after each successful job/task/note mutation.
Why:   Keeps other open tabs and devices in sync without polling.
Who:   ResourceService publishes; routes/realtime.py registers connections.

Delivery is best effort and unscoped: every client receives every event,
whichever user owns the record. Clients use events as a refetch hint.

Fault isolation:
    The connection set is copied before iterating, so connects and
    disconnects during a broadcast are harmless. Connections that are not
    open are skipped; a send that raises is logged and skipped. Nothing
    propagates to the request that triggered the broadcast.
"""

import json
import logging
from typing import Any, Set

from starlette.websockets import WebSocket, WebSocketState

logger = logging.getLogger(__name__)


def _is_open(websocket: WebSocket) -> bool:
    return (
        websocket.client_state == WebSocketState.CONNECTED
        and websocket.application_state == WebSocketState.CONNECTED
    )


class Broadcaster:
    def __init__(self):
        self._connections: Set[WebSocket] = set()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def connect(self, websocket: WebSocket) -> None:
        self._connections.add(websocket)
        logger.info("WebSocket client connected (%d total)", len(self._connections))

    def disconnect(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)
        logger.info("WebSocket client disconnected (%d total)", len(self._connections))

    async def broadcast(self, event: str, data: Any) -> int:
        """Send one event to every open connection; returns how many received it."""
        message = json.dumps({"event": event, "data": data})
        delivered = 0
        for websocket in list(self._connections):
            if not _is_open(websocket):
                continue
            try:
                await websocket.send_text(message)
            except Exception as exc:
                logger.warning("Failed to deliver %s to a WebSocket client: %s", event, exc)
                continue
            delivered += 1
        logger.debug("Broadcast %s to %d client(s)", event, delivered)
        return delivered

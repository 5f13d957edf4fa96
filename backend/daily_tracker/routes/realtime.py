"""
Daily Tracker Backend — WebSocket Endpoint
============================================

What:  Registers each client with the Broadcaster so it receives every
       `{"event", "data"}` change notification.
How:   The receive loop only answers liveness pings:

           client → {"type": "ping"}
           server → {"type": "pong"}

       Anything else is ignored. Text that is not JSON and binary frames
       are logged and skipped.
       The connection leaves the broadcast set when the loop ends.

No authentication and no per-user filtering: events are refetch hints
delivered to every connected client.
"""

import json
import logging

from starlette.websockets import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

PONG = json.dumps({"type": "pong"})


async def websocket_endpoint(websocket: WebSocket) -> None:
    broadcaster = websocket.app.state.broadcaster
    await websocket.accept()
    broadcaster.connect(websocket)
    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
            raw = frame.get("text")
            if raw is None:
                logger.warning("Ignoring binary WebSocket frame")
                continue
            try:
                message = json.loads(raw)
            except ValueError:
                logger.warning("Ignoring non-JSON WebSocket message")
                continue
            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_text(PONG)
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(websocket)

"""
Broadcaster fan-out and fault isolation.
"""

import json

import pytest
from starlette.websockets import WebSocketState

from daily_tracker.services.broadcaster import Broadcaster


class FakeSocket:
    def __init__(self, fail: bool = False, state: WebSocketState = WebSocketState.CONNECTED):
        self.fail = fail
        self.client_state = state
        self.application_state = state
        self.sent = []

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("socket closed mid-send")
        self.sent.append(json.loads(text))


class TestBroadcaster:
    @pytest.mark.asyncio
    async def test_reaches_every_open_connection(self):
        broadcaster = Broadcaster()
        sockets = [FakeSocket(), FakeSocket()]
        for socket in sockets:
            broadcaster.connect(socket)

        delivered = await broadcaster.broadcast("job:created", {"id": "j1"})

        assert delivered == 2
        for socket in sockets:
            assert socket.sent == [{"event": "job:created", "data": {"id": "j1"}}]

    @pytest.mark.asyncio
    async def test_failing_send_is_skipped(self):
        broadcaster = Broadcaster()
        healthy, broken, also_healthy = FakeSocket(), FakeSocket(fail=True), FakeSocket()
        for socket in (healthy, broken, also_healthy):
            broadcaster.connect(socket)

        delivered = await broadcaster.broadcast("task:deleted", {"id": "t1"})

        assert delivered == 2
        assert healthy.sent and also_healthy.sent

    @pytest.mark.asyncio
    async def test_closed_connections_are_not_sent_to(self):
        broadcaster = Broadcaster()
        closed = FakeSocket(state=WebSocketState.DISCONNECTED)
        broadcaster.connect(closed)
        assert await broadcaster.broadcast("note:updated", {}) == 0
        assert closed.sent == []

    @pytest.mark.asyncio
    async def test_disconnect_during_broadcast(self):
        broadcaster = Broadcaster()

        class LeavingSocket(FakeSocket):
            async def send_text(self, text):
                broadcaster.disconnect(self)
                await super().send_text(text)

        leaving, staying = LeavingSocket(), FakeSocket()
        broadcaster.connect(leaving)
        broadcaster.connect(staying)

        await broadcaster.broadcast("job:updated", {"id": "j1"})

        assert staying.sent
        assert broadcaster.connection_count == 1

    def test_connect_disconnect_counts(self):
        broadcaster = Broadcaster()
        socket = FakeSocket()
        broadcaster.connect(socket)
        assert broadcaster.connection_count == 1
        broadcaster.disconnect(socket)
        broadcaster.disconnect(socket)
        assert broadcaster.connection_count == 0

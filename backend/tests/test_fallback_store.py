"""
FallbackStore: durable-first dispatch and the one-way switch to memory.
"""

import logging

import pytest

from conftest import FailingBackend
from daily_tracker.schemas.records import OtpChannel, ResourceKind
from daily_tracker.storage import FallbackStore, MemoryBackend, StoreState


class SwitchableBackend(MemoryBackend):
    """Works until `broken` is set, then raises on every call."""

    def __init__(self):
        super().__init__()
        self.broken = False
        self.calls = 0

    async def list_records(self, kind, user_id):
        self.calls += 1
        if self.broken:
            raise ConnectionError("connection reset")
        return await super().list_records(kind, user_id)

    async def create_record(self, kind, user_id, fields):
        self.calls += 1
        if self.broken:
            raise ConnectionError("connection reset")
        return await super().create_record(kind, user_id, fields)


class TestStoreState:
    def test_mark_degraded_only_flips_once(self):
        state = StoreState()
        assert state.mark_degraded() is True
        assert state.mark_degraded() is False
        assert state.degraded is True


class TestFallbackStore:
    @pytest.mark.asyncio
    async def test_memory_only_is_not_degraded(self, memory_backend):
        store = FallbackStore(durable=None, memory=memory_backend)
        await store.create_record(ResourceKind.NOTE, "u1", {"title": "hello"})
        assert store.mode == "memory"
        assert store.state.degraded is False

    @pytest.mark.asyncio
    async def test_healthy_durable_is_used(self):
        durable = SwitchableBackend()
        store = FallbackStore(durable=durable)
        job = await store.create_record(ResourceKind.JOB, "u1", {"title": "Engineer"})
        assert store.mode == "durable"
        assert job.id in durable.records[ResourceKind.JOB]
        assert store.memory.records[ResourceKind.JOB] == {}

    @pytest.mark.asyncio
    async def test_failing_call_is_answered_from_memory(self, caplog):
        durable = FailingBackend()
        store = FallbackStore(durable=durable)
        with caplog.at_level(logging.ERROR, logger="daily_tracker.storage.fallback"):
            user = await store.create_user("alice", "alice@example.com", None, "hash")
        assert user.username == "alice"
        assert store.state.degraded is True
        assert store.mode == "memory"
        assert "create_user" in caplog.text

    @pytest.mark.asyncio
    async def test_durable_never_retried_after_failover(self):
        durable = FailingBackend()
        store = FallbackStore(durable=durable)
        await store.get_user_by_username("alice")
        await store.store_otp("a@example.com", "123456", OtpChannel.EMAIL)
        await store.list_records(ResourceKind.TASK, "u1")
        assert durable.calls == ["get_user_by_username"]

    @pytest.mark.asyncio
    async def test_all_kinds_stay_consistent_after_failover(self):
        store = FallbackStore(durable=FailingBackend())
        for kind, fields in (
            (ResourceKind.JOB, {"title": "Engineer"}),
            (ResourceKind.TASK, {"title": "Read"}),
            (ResourceKind.NOTE, {"title": "Idea"}),
        ):
            created = await store.create_record(kind, "u1", fields)
            assert [r.id for r in await store.list_records(kind, "u1")] == [created.id]
            updated = await store.update_record(kind, created.id, "u1", {"title": "Changed"})
            assert updated.title == "Changed"
            assert await store.delete_record(kind, created.id, "u1")
            assert await store.list_records(kind, "u1") == []

    @pytest.mark.asyncio
    async def test_midlife_failure_switches_and_leaves_durable_data_behind(self):
        durable = SwitchableBackend()
        store = FallbackStore(durable=durable)
        await store.create_record(ResourceKind.NOTE, "u1", {"title": "before"})

        durable.broken = True
        assert await store.list_records(ResourceKind.NOTE, "u1") == []
        after = await store.create_record(ResourceKind.NOTE, "u1", {"title": "after"})

        durable.broken = False
        assert [r.id for r in await store.list_records(ResourceKind.NOTE, "u1")] == [after.id]
        assert durable.calls == 2
        assert store.state.degraded is True

    @pytest.mark.asyncio
    async def test_shared_state_can_be_injected_pre_failed(self):
        state = StoreState(degraded=True)
        durable = FailingBackend()
        store = FallbackStore(durable=durable, state=state)
        await store.get_user_by_email("a@example.com")
        assert durable.calls == []
        assert store.mode == "memory"

"""
SqlBackend against SQLite (aiosqlite): same contract as the memory backend.
"""

import pytest
import pytest_asyncio

from daily_tracker.database import (
    build_engine,
    build_session_factory,
    create_tables,
    dispose_engine,
)
from daily_tracker.schemas.records import OtpChannel, ResourceKind
from daily_tracker.storage import FallbackStore, SqlBackend


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'tracker.db'}")
    await create_tables(engine)
    yield engine
    await dispose_engine(engine)


@pytest.fixture
def sql_backend(engine, clock):
    return SqlBackend(build_session_factory(engine), clock=clock)


class TestSqlUsers:
    @pytest.mark.asyncio
    async def test_create_and_lookup(self, sql_backend):
        user = await sql_backend.create_user("alice", "alice@example.com", "5550100", "hash")
        assert (await sql_backend.get_user_by_username("alice")).id == user.id
        assert (await sql_backend.get_user_by_email("alice@example.com")).id == user.id
        assert (await sql_backend.get_user_by_phone("5550100")).id == user.id
        assert (await sql_backend.get_user_by_id(user.id)).email == "alice@example.com"

    @pytest.mark.asyncio
    async def test_password_updates(self, sql_backend):
        user = await sql_backend.create_user("alice", "alice@example.com", None, "old")
        assert await sql_backend.update_password(user.id, "new")
        assert await sql_backend.update_password_by_email("alice@example.com", "newer")
        assert (await sql_backend.get_user_by_id(user.id)).password == "newer"
        assert not await sql_backend.update_password("missing", "x")

    @pytest.mark.asyncio
    async def test_unique_violation_degrades_fallback_store(self, sql_backend):
        store = FallbackStore(durable=sql_backend)
        await store.create_user("alice", "alice@example.com", None, "hash")
        await store.create_user("alice", "other@example.com", None, "hash")
        assert store.state.degraded is True


class TestSqlOtp:
    @pytest.mark.asyncio
    async def test_supersede_and_verify(self, sql_backend):
        await sql_backend.store_otp("a@example.com", "111111", OtpChannel.EMAIL)
        await sql_backend.store_otp("a@example.com", "222222", OtpChannel.EMAIL)
        assert not await sql_backend.verify_otp("a@example.com", "111111", OtpChannel.EMAIL)
        assert await sql_backend.verify_otp("a@example.com", "222222", OtpChannel.EMAIL)
        assert not await sql_backend.verify_otp("a@example.com", "222222", OtpChannel.PHONE)

    @pytest.mark.asyncio
    async def test_expiry(self, sql_backend, clock):
        await sql_backend.store_otp("5550100", "123456", OtpChannel.PHONE)
        clock.advance(minutes=5)
        assert await sql_backend.verify_otp("5550100", "123456", OtpChannel.PHONE)
        clock.advance(seconds=1)
        assert not await sql_backend.verify_otp("5550100", "123456", OtpChannel.PHONE)
        # the expired row is gone, so rewinding the clock does not revive it
        clock.advance(minutes=-10)
        assert not await sql_backend.verify_otp("5550100", "123456", OtpChannel.PHONE)

    @pytest.mark.asyncio
    async def test_delete(self, sql_backend):
        await sql_backend.store_otp("a@example.com", "123456", OtpChannel.EMAIL)
        await sql_backend.delete_otp("a@example.com", OtpChannel.EMAIL)
        assert not await sql_backend.verify_otp("a@example.com", "123456", OtpChannel.EMAIL)


class TestSqlRecords:
    @pytest.mark.asyncio
    async def test_crud_round(self, sql_backend, clock):
        first = await sql_backend.create_record(ResourceKind.JOB, "u1", {"title": "Engineer"})
        clock.advance(seconds=1)
        second = await sql_backend.create_record(
            ResourceKind.JOB, "u1", {"title": "Designer", "company": "Acme"}
        )
        assert first.status == "applied"
        assert first.created_at.tzinfo is not None

        listed = await sql_backend.list_records(ResourceKind.JOB, "u1")
        assert [r.id for r in listed] == [second.id, first.id]

        clock.advance(minutes=1)
        updated = await sql_backend.update_record(
            ResourceKind.JOB, second.id, "u1", {"status": "offer"}
        )
        assert updated.status == "offer"
        assert updated.company == "Acme"
        assert updated.updated_at > updated.created_at

        assert await sql_backend.delete_record(ResourceKind.JOB, first.id, "u1")
        assert [r.id for r in await sql_backend.list_records(ResourceKind.JOB, "u1")] == [second.id]

    @pytest.mark.asyncio
    async def test_equal_timestamps_break_ties_by_id(self, sql_backend):
        created = [
            await sql_backend.create_record(ResourceKind.NOTE, "u1", {"title": str(i), "content": ""})
            for i in range(5)
        ]
        expected = sorted((r.id for r in created), reverse=True)
        for _ in range(3):
            listed = await sql_backend.list_records(ResourceKind.NOTE, "u1")
            assert [r.id for r in listed] == expected

    @pytest.mark.asyncio
    async def test_owner_scoping(self, sql_backend):
        note = await sql_backend.create_record(ResourceKind.NOTE, "u1", {"title": "", "content": "x"})
        assert await sql_backend.list_records(ResourceKind.NOTE, "u2") == []
        assert await sql_backend.update_record(ResourceKind.NOTE, note.id, "u2", {"content": "y"}) is None
        assert not await sql_backend.delete_record(ResourceKind.NOTE, note.id, "u2")

    @pytest.mark.asyncio
    async def test_task_defaults(self, sql_backend):
        task = await sql_backend.create_record(ResourceKind.TASK, "u1", {"title": "Read", "url": None})
        assert task.completed is False
        assert task.url is None

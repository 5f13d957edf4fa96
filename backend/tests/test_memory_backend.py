"""
MemoryBackend: OTP semantics, ordering and owner scoping.
"""

from datetime import timedelta

import pytest

from daily_tracker.schemas.records import OtpChannel, ResourceKind


class TestOtp:
    @pytest.mark.asyncio
    async def test_store_then_verify(self, memory_backend):
        await memory_backend.store_otp("a@example.com", "123456", OtpChannel.EMAIL)
        assert await memory_backend.verify_otp("a@example.com", "123456", OtpChannel.EMAIL)
        assert not await memory_backend.verify_otp("a@example.com", "654321", OtpChannel.EMAIL)

    @pytest.mark.asyncio
    async def test_verify_does_not_consume(self, memory_backend):
        await memory_backend.store_otp("a@example.com", "123456", "email")
        assert await memory_backend.verify_otp("a@example.com", "123456", "email")
        assert await memory_backend.verify_otp("a@example.com", "123456", "email")

    @pytest.mark.asyncio
    async def test_new_code_supersedes_old(self, memory_backend):
        await memory_backend.store_otp("a@example.com", "111111", OtpChannel.EMAIL)
        await memory_backend.store_otp("a@example.com", "222222", OtpChannel.EMAIL)
        assert not await memory_backend.verify_otp("a@example.com", "111111", OtpChannel.EMAIL)
        assert await memory_backend.verify_otp("a@example.com", "222222", OtpChannel.EMAIL)

    @pytest.mark.asyncio
    async def test_channels_do_not_collide(self, memory_backend):
        await memory_backend.store_otp("5550100", "111111", OtpChannel.PHONE)
        assert not await memory_backend.verify_otp("5550100", "111111", OtpChannel.EMAIL)
        assert await memory_backend.verify_otp("5550100", "111111", OtpChannel.PHONE)

    @pytest.mark.asyncio
    async def test_valid_until_exactly_five_minutes(self, memory_backend, clock):
        await memory_backend.store_otp("a@example.com", "123456", OtpChannel.EMAIL)
        clock.advance(minutes=5)
        assert await memory_backend.verify_otp("a@example.com", "123456", OtpChannel.EMAIL)

    @pytest.mark.asyncio
    async def test_expired_code_fails_and_is_removed(self, memory_backend, clock):
        await memory_backend.store_otp("a@example.com", "123456", OtpChannel.EMAIL)
        clock.advance(minutes=5, seconds=1)
        assert not await memory_backend.verify_otp("a@example.com", "123456", OtpChannel.EMAIL)
        assert ("a@example.com", OtpChannel.EMAIL) not in memory_backend.otp_codes

    @pytest.mark.asyncio
    async def test_delete_otp(self, memory_backend):
        await memory_backend.store_otp("a@example.com", "123456", OtpChannel.EMAIL)
        await memory_backend.delete_otp("a@example.com", OtpChannel.EMAIL)
        assert not await memory_backend.verify_otp("a@example.com", "123456", OtpChannel.EMAIL)
        # deleting again is harmless
        await memory_backend.delete_otp("a@example.com", OtpChannel.EMAIL)


class TestUsers:
    @pytest.mark.asyncio
    async def test_lookups(self, memory_backend):
        user = await memory_backend.create_user("alice", "alice@example.com", "5550100", "hash")
        assert (await memory_backend.get_user_by_username("alice")).id == user.id
        assert (await memory_backend.get_user_by_email("alice@example.com")).id == user.id
        assert (await memory_backend.get_user_by_phone("5550100")).id == user.id
        assert (await memory_backend.get_user_by_id(user.id)).username == "alice"
        assert await memory_backend.get_user_by_username("bob") is None

    @pytest.mark.asyncio
    async def test_missing_phone_stored_empty_and_not_matched(self, memory_backend):
        user = await memory_backend.create_user("alice", "alice@example.com", None, "hash")
        assert user.phone == ""
        assert await memory_backend.get_user_by_phone("") is None

    @pytest.mark.asyncio
    async def test_update_password(self, memory_backend):
        user = await memory_backend.create_user("alice", "alice@example.com", None, "old")
        assert await memory_backend.update_password(user.id, "new")
        assert (await memory_backend.get_user_by_id(user.id)).password == "new"
        assert await memory_backend.update_password_by_email("alice@example.com", "newer")
        assert (await memory_backend.get_user_by_id(user.id)).password == "newer"
        assert not await memory_backend.update_password("missing", "x")
        assert not await memory_backend.update_password_by_email("nobody@example.com", "x")


class TestRecords:
    @pytest.mark.asyncio
    async def test_list_newest_first(self, memory_backend, clock):
        first = await memory_backend.create_record(ResourceKind.NOTE, "u1", {"title": "first"})
        clock.advance(seconds=1)
        second = await memory_backend.create_record(ResourceKind.NOTE, "u1", {"title": "second"})
        records = await memory_backend.list_records(ResourceKind.NOTE, "u1")
        assert [r.id for r in records] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_same_timestamp_latest_insert_first(self, memory_backend):
        first = await memory_backend.create_record(ResourceKind.NOTE, "u1", {"title": "a"})
        second = await memory_backend.create_record(ResourceKind.NOTE, "u1", {"title": "b"})
        records = await memory_backend.list_records(ResourceKind.NOTE, "u1")
        assert [r.id for r in records] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_list_is_scoped_to_owner(self, memory_backend):
        await memory_backend.create_record(ResourceKind.JOB, "u1", {"title": "Engineer"})
        assert await memory_backend.list_records(ResourceKind.JOB, "u2") == []

    @pytest.mark.asyncio
    async def test_partial_update_merges(self, memory_backend, clock):
        job = await memory_backend.create_record(
            ResourceKind.JOB, "u1", {"title": "Engineer", "company": "Acme"}
        )
        clock.advance(minutes=1)
        updated = await memory_backend.update_record(
            ResourceKind.JOB, job.id, "u1", {"status": "interview"}
        )
        assert updated.status == "interview"
        assert updated.company == "Acme"
        assert updated.created_at == job.created_at
        assert updated.updated_at == job.created_at + timedelta(minutes=1)

    @pytest.mark.asyncio
    async def test_other_owner_cannot_update_or_delete(self, memory_backend):
        task = await memory_backend.create_record(ResourceKind.TASK, "u1", {"title": "Read"})
        assert await memory_backend.update_record(ResourceKind.TASK, task.id, "u2", {"completed": True}) is None
        assert not await memory_backend.delete_record(ResourceKind.TASK, task.id, "u2")
        assert await memory_backend.delete_record(ResourceKind.TASK, task.id, "u1")
        assert not await memory_backend.delete_record(ResourceKind.TASK, task.id, "u1")

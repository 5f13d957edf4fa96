"""
Daily Tracker Backend — Durable SQL Storage Backend
=====================================================

What:  StorageBackend over SQLAlchemy's async ORM.
How:   Every operation opens its own session from the injected factory and
       commits before returning. Rows are converted into Pydantic records
       (schemas/records.py) while still attached, so nothing outside this
       module touches ORM objects.
Who:   Wrapped by FallbackStore; never called directly by services.

Error handling:
    Nothing is caught here. Connectivity loss, constraint violations and
    serialization faults propagate to FallbackStore, which logs them and
    switches the process to memory. `async with session_factory()` rolls
    back and closes the session on the way out.

Timestamps:
    created_at / updated_at / expires_at are set from the injected clock
    rather than server defaults, so both backends share one time source.


Ordering:
    Lists are newest `created_at` first, then `id` descending. Random UUID
    ids make that tie-break stable but not insertion order; MemoryBackend
    breaks equal timestamps by latest insert instead.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from daily_tracker.models import Job, Note, OtpCode, Task, User
from daily_tracker.schemas.common import ensure_utc
from daily_tracker.schemas.records import (
    RECORD_TYPES,
    OtpChannel,
    ResourceKind,
    ResourceRecord,
    UserRecord,
)
from daily_tracker.storage.base import (
    DEFAULT_OTP_TTL,
    ChannelLike,
    Clock,
    StorageBackend,
    utcnow,
)

logger = logging.getLogger(__name__)

MODEL_TYPES: Dict[ResourceKind, Type] = {
    ResourceKind.JOB: Job,
    ResourceKind.TASK: Task,
    ResourceKind.NOTE: Note,
}


class SqlBackend(StorageBackend):
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = utcnow,
        otp_ttl=DEFAULT_OTP_TTL,
    ):
        self._session_factory = session_factory
        self._clock = clock
        self._otp_ttl = otp_ttl

    # ── Users ─────────────────────────────────────────────────────────────

    async def create_user(
        self, username: str, email: str, phone: Optional[str], password_hash: str
    ) -> UserRecord:
        async with self._session_factory() as session:
            user = User(
                id=str(uuid.uuid4()),
                username=username,
                email=email,
                phone=phone or "",
                password=password_hash,
                created_at=self._clock(),
            )
            session.add(user)
            await session.commit()
            logger.info("User inserted: %s (%s)", user.username, user.id)
            return UserRecord.model_validate(user)

    async def _get_user(self, column, value: str) -> Optional[UserRecord]:
        async with self._session_factory() as session:
            result = await session.execute(select(User).where(column == value).limit(1))
            user = result.scalar_one_or_none()
            return UserRecord.model_validate(user) if user is not None else None

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        return await self._get_user(User.username, username)

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        return await self._get_user(User.email, email)

    async def get_user_by_phone(self, phone: str) -> Optional[UserRecord]:
        if not phone:
            return None
        return await self._get_user(User.phone, phone)

    async def get_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        return await self._get_user(User.id, user_id)

    async def _set_password(self, column, value: str, password_hash: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                update(User).where(column == value).values(password=password_hash)
            )
            await session.commit()
            return result.rowcount > 0

    async def update_password(self, user_id: str, password_hash: str) -> bool:
        return await self._set_password(User.id, user_id, password_hash)

    async def update_password_by_email(self, email: str, password_hash: str) -> bool:
        return await self._set_password(User.email, email, password_hash)

    # ── One-time passcodes ────────────────────────────────────────────────

    async def store_otp(self, identifier: str, code: str, channel: ChannelLike) -> None:
        channel = OtpChannel(channel)
        now = self._clock()
        async with self._session_factory() as session:
            await session.execute(
                delete(OtpCode).where(
                    OtpCode.identifier == identifier,
                    OtpCode.channel == channel.value,
                )
            )
            session.add(
                OtpCode(
                    identifier=identifier,
                    channel=channel.value,
                    code=code,
                    expires_at=now + self._otp_ttl,
                    created_at=now,
                )
            )
            await session.commit()

    async def verify_otp(self, identifier: str, code: str, channel: ChannelLike) -> bool:
        channel = OtpChannel(channel)
        async with self._session_factory() as session:
            result = await session.execute(
                select(OtpCode)
                .where(OtpCode.identifier == identifier, OtpCode.channel == channel.value)
                .order_by(OtpCode.created_at.desc(), OtpCode.id.desc())
                .limit(1)
            )
            stored = result.scalar_one_or_none()
            if stored is None:
                return False
            if self._clock() > ensure_utc(stored.expires_at):
                await session.delete(stored)
                await session.commit()
                logger.info("OTP expired for %s (%s)", identifier, channel.value)
                return False
            return stored.code == code

    async def delete_otp(self, identifier: str, channel: ChannelLike) -> None:
        channel = OtpChannel(channel)
        async with self._session_factory() as session:
            await session.execute(
                delete(OtpCode).where(
                    OtpCode.identifier == identifier,
                    OtpCode.channel == channel.value,
                )
            )
            await session.commit()

    # ── Jobs / tasks / notes ──────────────────────────────────────────────

    async def list_records(self, kind: ResourceKind, user_id: str) -> List[ResourceRecord]:
        model = MODEL_TYPES[kind]
        record_type = RECORD_TYPES[kind]
        async with self._session_factory() as session:
            result = await session.execute(
                select(model)
                .where(model.user_id == user_id)
                .order_by(model.created_at.desc(), model.id.desc())
            )
            return [record_type.model_validate(row) for row in result.scalars().all()]

    async def create_record(
        self, kind: ResourceKind, user_id: str, fields: Dict[str, Any]
    ) -> ResourceRecord:
        now = self._clock()
        async with self._session_factory() as session:
            row = MODEL_TYPES[kind](
                id=str(uuid.uuid4()),
                user_id=user_id,
                created_at=now,
                updated_at=now,
                **fields,
            )
            session.add(row)
            await session.commit()
            return RECORD_TYPES[kind].model_validate(row)

    async def update_record(
        self, kind: ResourceKind, record_id: str, user_id: str, changes: Dict[str, Any]
    ) -> Optional[ResourceRecord]:
        model = MODEL_TYPES[kind]
        async with self._session_factory() as session:
            result = await session.execute(
                select(model).where(model.id == record_id, model.user_id == user_id)
            )
            row = result.scalar_one_or_none()
            if row is None:
                return None
            for name, value in changes.items():
                setattr(row, name, value)
            row.updated_at = self._clock()
            await session.commit()
            return RECORD_TYPES[kind].model_validate(row)

    async def delete_record(self, kind: ResourceKind, record_id: str, user_id: str) -> bool:
        model = MODEL_TYPES[kind]
        async with self._session_factory() as session:
            result = await session.execute(
                delete(model).where(model.id == record_id, model.user_id == user_id)
            )
            await session.commit()
            return result.rowcount > 0

"""
Daily Tracker Backend — Process-Memory Storage Backend
========================================================

What:  Keyed maps from id to record, living for the lifetime of the process.
Who:   Used by FallbackStore when no database is configured, and as the sole
       store after a durable-backend failover.

Ordering:
    Lists are sorted by created_at descending. Records that share a
    timestamp come back most recently inserted first (dicts keep insertion
    order; the list is reversed before the stable sort).

Nothing here is ever copied back to the database.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from daily_tracker.schemas.records import (
    RECORD_TYPES,
    OtpChannel,
    OtpRecord,
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


class MemoryBackend(StorageBackend):
    def __init__(self, clock: Clock = utcnow, otp_ttl=DEFAULT_OTP_TTL):
        self._clock = clock
        self._otp_ttl = otp_ttl
        self.users: Dict[str, UserRecord] = {}
        self.otp_codes: Dict[Tuple[str, OtpChannel], OtpRecord] = {}
        self.records: Dict[ResourceKind, Dict[str, ResourceRecord]] = {
            kind: {} for kind in ResourceKind
        }

    # ── Users ─────────────────────────────────────────────────────────────

    async def create_user(
        self, username: str, email: str, phone: Optional[str], password_hash: str
    ) -> UserRecord:
        user = UserRecord(
            id=str(uuid.uuid4()),
            username=username,
            email=email,
            phone=phone or "",
            password=password_hash,
        )
        self.users[user.id] = user
        logger.info("User created in memory: %s (%s)", user.username, user.id)
        return user

    def _find_user(self, field: str, value: str) -> Optional[UserRecord]:
        return next(
            (u for u in self.users.values() if getattr(u, field) == value),
            None,
        )

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        return self._find_user("username", username)

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        return self._find_user("email", email)

    async def get_user_by_phone(self, phone: str) -> Optional[UserRecord]:
        if not phone:
            return None
        return self._find_user("phone", phone)

    async def get_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        return self.users.get(user_id)

    async def update_password(self, user_id: str, password_hash: str) -> bool:
        user = self.users.get(user_id)
        if user is None:
            return False
        self.users[user_id] = user.model_copy(update={"password": password_hash})
        return True

    async def update_password_by_email(self, email: str, password_hash: str) -> bool:
        user = self._find_user("email", email)
        if user is None:
            return False
        return await self.update_password(user.id, password_hash)

    # ── One-time passcodes ────────────────────────────────────────────────

    async def store_otp(self, identifier: str, code: str, channel: ChannelLike) -> None:
        channel = OtpChannel(channel)
        self.otp_codes[(identifier, channel)] = OtpRecord(
            identifier=identifier,
            channel=channel,
            code=code,
            expires_at=self._clock() + self._otp_ttl,
        )

    async def verify_otp(self, identifier: str, code: str, channel: ChannelLike) -> bool:
        key = (identifier, OtpChannel(channel))
        stored = self.otp_codes.get(key)
        if stored is None:
            return False
        if self._clock() > stored.expires_at:
            del self.otp_codes[key]
            logger.info("OTP expired for %s (%s)", identifier, key[1].value)
            return False
        return stored.code == code

    async def delete_otp(self, identifier: str, channel: ChannelLike) -> None:
        self.otp_codes.pop((identifier, OtpChannel(channel)), None)

    # ── Jobs / tasks / notes ──────────────────────────────────────────────

    async def list_records(self, kind: ResourceKind, user_id: str) -> List[ResourceRecord]:
        owned = [r for r in reversed(self.records[kind].values()) if r.user_id == user_id]
        return sorted(owned, key=lambda r: r.created_at, reverse=True)

    async def create_record(
        self, kind: ResourceKind, user_id: str, fields: Dict[str, Any]
    ) -> ResourceRecord:
        now = self._clock()
        record = RECORD_TYPES[kind](
            id=str(uuid.uuid4()),
            user_id=user_id,
            created_at=now,
            updated_at=now,
            **fields,
        )
        self.records[kind][record.id] = record
        return record

    def _owned(self, kind: ResourceKind, record_id: str, user_id: str) -> Optional[ResourceRecord]:
        record = self.records[kind].get(record_id)
        if record is None or record.user_id != user_id:
            return None
        return record

    async def update_record(
        self, kind: ResourceKind, record_id: str, user_id: str, changes: Dict[str, Any]
    ) -> Optional[ResourceRecord]:
        existing = self._owned(kind, record_id, user_id)
        if existing is None:
            return None
        updated = existing.model_copy(update={**changes, "updated_at": self._clock()})
        self.records[kind][record_id] = updated
        return updated

    async def delete_record(self, kind: ResourceKind, record_id: str, user_id: str) -> bool:
        if self._owned(kind, record_id, user_id) is None:
            return False
        del self.records[kind][record_id]
        return True

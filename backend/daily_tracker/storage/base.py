"""
Daily Tracker Backend — Abstract Storage Interface
====================================================

What:  The contract every storage backend implements.
How:   Concrete backends (SqlBackend, MemoryBackend) implement each coroutine;
       FallbackStore implements the same interface by delegating to them,
       so services depend only on `StorageBackend`.

Contract notes:
    - Resource operations take a `ResourceKind` instead of having one method
      per entity; jobs, tasks and notes share identical semantics.
    - list_records returns only the given user's records, newest first.
    - update_record / delete_record match on id AND owning user. A record
      owned by someone else is reported exactly like a missing one
      (None / False).
    - update_record merges: keys absent from `changes` keep their value;
      `updated_at` is always refreshed.
    - OTP codes live `otp_ttl` after storage. At most one code is live per
      (identifier, channel); verification expires codes lazily.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Union

from daily_tracker.schemas.records import (
    OtpChannel,
    ResourceKind,
    ResourceRecord,
    UserRecord,
)

Clock = Callable[[], datetime]

DEFAULT_OTP_TTL = timedelta(minutes=5)

ChannelLike = Union[OtpChannel, str]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StorageBackend(ABC):
    """Uniform data-access interface for users, OTP codes and resources."""

    # ── Users ─────────────────────────────────────────────────────────────

    @abstractmethod
    async def create_user(
        self, username: str, email: str, phone: Optional[str], password_hash: str
    ) -> UserRecord:
        ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def get_user_by_phone(self, phone: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def get_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def update_password(self, user_id: str, password_hash: str) -> bool:
        """Returns False when no user has this id."""

    @abstractmethod
    async def update_password_by_email(self, email: str, password_hash: str) -> bool:
        """Returns False when no user has this email."""

    # ── One-time passcodes ────────────────────────────────────────────────

    @abstractmethod
    async def store_otp(self, identifier: str, code: str, channel: ChannelLike) -> None:
        """Replace any code for (identifier, channel) with `code`."""

    @abstractmethod
    async def verify_otp(self, identifier: str, code: str, channel: ChannelLike) -> bool:
        """
        Exact, case-sensitive comparison against the live code.

        Absent → False. Expired → record deleted, False. Verifying does not
        consume the code; callers delete it once it has been used.
        """

    @abstractmethod
    async def delete_otp(self, identifier: str, channel: ChannelLike) -> None:
        """No-op when nothing is stored."""

    # ── Jobs / tasks / notes ──────────────────────────────────────────────

    @abstractmethod
    async def list_records(self, kind: ResourceKind, user_id: str) -> List[ResourceRecord]:
        ...

    @abstractmethod
    async def create_record(
        self, kind: ResourceKind, user_id: str, fields: Dict[str, Any]
    ) -> ResourceRecord:
        ...

    @abstractmethod
    async def update_record(
        self, kind: ResourceKind, record_id: str, user_id: str, changes: Dict[str, Any]
    ) -> Optional[ResourceRecord]:
        ...

    @abstractmethod
    async def delete_record(self, kind: ResourceKind, record_id: str, user_id: str) -> bool:
        ...

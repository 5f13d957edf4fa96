"""
Daily Tracker Backend — Durable-First Storage with Memory Fallback
====================================================================

What:  The store every service talks to. Tries the durable backend, and on
       any exception logs it, marks the process degraded and re-runs the
       same operation against memory.
Why:   A database outage should cost durability, not availability; users
       keep working against memory until the process restarts.
Who:   Built once in main.create_app() and shared through app.state.

State machine (per process):

    durable ──(any exception from SqlBackend)──▶ memory
       ▲                                           │
       └──────────────── never ◀───────────────────┘

    - The failing call is answered from memory; the caller never sees the
      durable error.
    - Once degraded, every later call (including unrelated ones) goes
      straight to memory. The durable backend is not retried.
    - Memory contents are never copied back to the database. Data written
      after the switch is lost on restart.
    - With no durable backend configured the store is memory-only from the
      start; the degraded flag stays false because nothing failed.

The flag lives on a `StoreState` owned by the store; callers may pass one in.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from daily_tracker.schemas.records import ResourceKind, ResourceRecord, UserRecord
from daily_tracker.storage.base import ChannelLike, StorageBackend
from daily_tracker.storage.memory import MemoryBackend

logger = logging.getLogger(__name__)


@dataclass
class StoreState:
    """Process-wide storage mode. `degraded` only ever goes False → True."""

    degraded: bool = False

    def mark_degraded(self) -> bool:
        """Set the flag. Returns True only for the call that flipped it."""
        if self.degraded:
            return False
        self.degraded = True
        return True


class FallbackStore(StorageBackend):
    def __init__(
        self,
        durable: Optional[StorageBackend],
        memory: Optional[MemoryBackend] = None,
        state: Optional[StoreState] = None,
    ):
        self.durable = durable
        self.memory = memory if memory is not None else MemoryBackend()
        self.state = state if state is not None else StoreState()

    @property
    def mode(self) -> str:
        if self.durable is None or self.state.degraded:
            return "memory"
        return "durable"

    async def _call(self, operation: str, *args: Any) -> Any:
        if self.durable is not None and not self.state.degraded:
            try:
                return await getattr(self.durable, operation)(*args)
            # Why broad: driver, pool and constraint errors all mean the same
            # thing here; the durable store can no longer be trusted.
            except Exception as exc:
                logger.error(
                    "Durable store failed during %s, serving from memory from now on: %s",
                    operation,
                    exc,
                    exc_info=True,
                )
                if self.state.mark_degraded():
                    logger.warning(
                        "Storage degraded to process memory; new data will not survive a restart"
                    )
        return await getattr(self.memory, operation)(*args)

    # ── Users ─────────────────────────────────────────────────────────────

    async def create_user(
        self, username: str, email: str, phone: Optional[str], password_hash: str
    ) -> UserRecord:
        return await self._call("create_user", username, email, phone, password_hash)

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        return await self._call("get_user_by_username", username)

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        return await self._call("get_user_by_email", email)

    async def get_user_by_phone(self, phone: str) -> Optional[UserRecord]:
        return await self._call("get_user_by_phone", phone)

    async def get_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        return await self._call("get_user_by_id", user_id)

    async def update_password(self, user_id: str, password_hash: str) -> bool:
        return await self._call("update_password", user_id, password_hash)

    async def update_password_by_email(self, email: str, password_hash: str) -> bool:
        return await self._call("update_password_by_email", email, password_hash)

    # ── One-time passcodes ────────────────────────────────────────────────

    async def store_otp(self, identifier: str, code: str, channel: ChannelLike) -> None:
        await self._call("store_otp", identifier, code, channel)

    async def verify_otp(self, identifier: str, code: str, channel: ChannelLike) -> bool:
        return await self._call("verify_otp", identifier, code, channel)

    async def delete_otp(self, identifier: str, channel: ChannelLike) -> None:
        await self._call("delete_otp", identifier, channel)

    # ── Jobs / tasks / notes ──────────────────────────────────────────────

    async def list_records(self, kind: ResourceKind, user_id: str) -> List[ResourceRecord]:
        return await self._call("list_records", kind, user_id)

    async def create_record(
        self, kind: ResourceKind, user_id: str, fields: Dict[str, Any]
    ) -> ResourceRecord:
        return await self._call("create_record", kind, user_id, fields)

    async def update_record(
        self, kind: ResourceKind, record_id: str, user_id: str, changes: Dict[str, Any]
    ) -> Optional[ResourceRecord]:
        return await self._call("update_record", kind, record_id, user_id, changes)

    async def delete_record(self, kind: ResourceKind, record_id: str, user_id: str) -> bool:
        return await self._call("delete_record", kind, record_id, user_id)

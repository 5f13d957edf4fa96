"""
Daily Tracker Backend — File-Persisted Session Store
======================================================

What:  Server-side sessions: opaque token → (user id, expiry).
Why:   Opaque server-side tokens can be revoked on logout; signed cookies
       cannot.
How:   An in-memory map mirrored to a JSON file. The file is read once, on
       first use, and rewritten after every change by writing a temp file
       beside it and `os.replace`-ing it into place, so a crash never leaves
       half a file.
Who:   AuthService creates and destroys sessions; the `require_user_id`
       dependency resolves the cookie on every authenticated request.

Concurrency:
    Requests interleave at every await, so rewrites are serialized by an
    asyncio.Lock and each one writes its own uniquely named temp file.
    The payload is snapshotted inside the lock, so the last writer always
    saves the current map.

The session store is deliberately independent of the primary store: it
keeps working (and keeps users logged in) across a durable→memory failover.

File format:
    {
        "<token>": {"user_id": "…", "expires_at": "2026-01-01T00:00:00+00:00"},
        ...
    }
"""

import asyncio
import json
import logging
import os
import secrets
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, Optional, Union

import aiofiles
from pydantic import BaseModel, ValidationError, field_validator

from daily_tracker.schemas.common import ensure_utc
from daily_tracker.storage.base import Clock, utcnow

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


class SessionData(BaseModel):
    user_id: str
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class SessionStore:
    def __init__(
        self,
        path: Union[str, Path],
        ttl: timedelta = timedelta(days=7),
        clock: Clock = utcnow,
    ):
        self.path = Path(path)
        self.ttl = ttl
        self._clock = clock
        self._sessions: Dict[str, SessionData] = {}
        self._loaded = False
        # Serializes file rewrites; each write also gets its own temp name.
        self._write_lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    async def load(self) -> None:
        """Read the session file once. Missing or corrupt files start empty."""
        if self._loaded:
            return
        self._loaded = True

        if not self.path.exists():
            return

        async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
            raw = await f.read()
        try:
            entries = json.loads(raw) if raw.strip() else {}
        except ValueError:
            logger.error("Session file %s is not valid JSON; starting empty", self.path)
            return
        if not isinstance(entries, dict):
            logger.error("Session file %s has unexpected shape; starting empty", self.path)
            return

        now = self._clock()
        for token, data in entries.items():
            try:
                session = SessionData.model_validate(data)
            except ValidationError:
                logger.warning("Skipping malformed session entry in %s", self.path)
                continue
            if session.expires_at > now:
                self._sessions[token] = session
        logger.info("Loaded %d session(s) from %s", len(self._sessions), self.path)

    async def _persist(self) -> None:
        async with self._write_lock:
            # Snapshot under the lock so the last writer always saves the newest map.
            payload = {token: s.model_dump(mode="json") for token, s in self._sessions.items()}
            tmp_path = self.path.with_name(f"{self.path.name}.{secrets.token_hex(4)}.tmp")
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                    await f.write(json.dumps(payload))
                os.replace(tmp_path, self.path)
            except OSError as exc:
                logger.error("Failed to persist sessions to %s: %s", self.path, exc)
                if tmp_path.exists():
                    tmp_path.unlink()
                raise

    async def create(self, user_id: str) -> str:
        """Start a session for `user_id` and return its token."""
        await self.load()
        token = secrets.token_urlsafe(TOKEN_BYTES)
        self._sessions[token] = SessionData(user_id=user_id, expires_at=self._clock() + self.ttl)
        await self._persist()
        logger.info("Session created for user %s", user_id)
        return token

    async def get_user_id(self, token: Optional[str]) -> Optional[str]:
        """Resolve a token; expired sessions are removed and yield None."""
        if not token:
            return None
        await self.load()
        session = self._sessions.get(token)
        if session is None:
            return None
        if self._clock() >= session.expires_at:
            del self._sessions[token]
            await self._persist()
            return None
        return session.user_id

    async def destroy(self, token: Optional[str]) -> None:
        if not token:
            return
        await self.load()
        if self._sessions.pop(token, None) is not None:
            await self._persist()

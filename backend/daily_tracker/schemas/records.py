"""
Daily Tracker Backend — Entity Records and Resource Payloads
==============================================================

What:  Pydantic models for users, OTP codes, jobs, tasks and notes.
How:   Both storage backends return these types: the memory backend keeps
       them in its maps directly, the SQL backend validates ORM rows into
       them (`from_attributes`). Services and routes never see ORM objects.

Create / Update payloads:
    *Create models carry the client-writable fields with their defaults.
    *Update models make every field optional; services apply
    `model_dump(exclude_unset=True)` so unspecified fields keep their value.
    An explicit null is rejected for columns that cannot be empty.
"""

from datetime import datetime
from enum import Enum
from typing import ClassVar, FrozenSet, Optional

from pydantic import Field, field_validator, model_validator

from daily_tracker.schemas.common import CamelModel, ensure_utc


class ResourceKind(str, Enum):
    """The three user-owned resource types; values double as event prefixes."""

    JOB = "job"
    TASK = "task"
    NOTE = "note"


class OtpChannel(str, Enum):
    EMAIL = "email"
    PHONE = "phone"


# ══════════════════════════════════════════════════════════════════════════
# Stored records
# ══════════════════════════════════════════════════════════════════════════


class UserRecord(CamelModel):
    """A stored user. `password` is the bcrypt hash."""

    id: str
    username: str
    email: str
    phone: str = ""
    password: str


class OtpRecord(CamelModel):
    identifier: str
    channel: OtpChannel
    code: str
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class ResourceRecord(CamelModel):
    """Fields every user-owned record shares."""

    id: str
    user_id: str
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class JobRecord(ResourceRecord):
    title: str
    company: Optional[str] = None
    url: Optional[str] = None
    status: str = "applied"
    notes: Optional[str] = None


class TaskRecord(ResourceRecord):
    title: str
    url: Optional[str] = None
    completed: bool = False


class NoteRecord(ResourceRecord):
    title: str = ""
    content: str = ""


# ══════════════════════════════════════════════════════════════════════════
# Request payloads
# ══════════════════════════════════════════════════════════════════════════


class JobCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    company: Optional[str] = Field(default=None, max_length=255)
    url: Optional[str] = None
    status: str = Field(default="applied", min_length=1, max_length=50)
    notes: Optional[str] = None


class TaskCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    url: Optional[str] = None
    completed: bool = False


class NoteCreate(CamelModel):
    title: str = Field(default="", max_length=255)
    content: str = ""


class ResourceUpdate(CamelModel):
    """Partial update; explicit nulls are refused for NOT NULL columns."""

    non_nullable: ClassVar[FrozenSet[str]] = frozenset()

    @model_validator(mode="after")
    def _reject_null_for_required(self):
        for name in self.non_nullable & self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        """Only the fields the client actually sent, keyed by field name."""
        return self.model_dump(exclude_unset=True)


class JobUpdate(ResourceUpdate):
    non_nullable: ClassVar[FrozenSet[str]] = frozenset({"title", "status"})

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    company: Optional[str] = Field(default=None, max_length=255)
    url: Optional[str] = None
    status: Optional[str] = Field(default=None, min_length=1, max_length=50)
    notes: Optional[str] = None


class TaskUpdate(ResourceUpdate):
    non_nullable: ClassVar[FrozenSet[str]] = frozenset({"title", "completed"})

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    url: Optional[str] = None
    completed: Optional[bool] = None


class NoteUpdate(ResourceUpdate):
    non_nullable: ClassVar[FrozenSet[str]] = frozenset({"title", "content"})

    title: Optional[str] = Field(default=None, max_length=255)
    content: Optional[str] = None


RECORD_TYPES = {
    ResourceKind.JOB: JobRecord,
    ResourceKind.TASK: TaskRecord,
    ResourceKind.NOTE: NoteRecord,
}

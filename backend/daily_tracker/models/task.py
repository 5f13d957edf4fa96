"""
Daily Tracker Backend — Task SQLAlchemy Model
===============================================

What:  ORM model for the `tasks` table (pending tasks, usually a link to act on).

URL uniqueness is NOT a database constraint: the per-user duplicate check
runs in the task service at creation time only, on a normalized form of the
URL (lower-cased, one trailing slash stripped).
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from daily_tracker.database import Base


class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_tasks_user_created", "user_id", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, completed={self.completed})>"

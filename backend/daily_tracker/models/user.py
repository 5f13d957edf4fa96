"""
Daily Tracker Backend — User SQLAlchemy Model
===============================================

What:  ORM model for the `users` table.
Who:   Read and written only by storage/sql.py.

Lifecycle:
    Created at registration; `password` rewritten on change/reset.
    No exposed operation deletes a user.

Column notes:
    - username / email carry unique constraints. A violation raised by the
      database is a durable-backend fault like any other, so the fallback
      store demotes itself to memory (the auth service checks usernames and emails
      before inserting).
    - phone is optional; an absent phone is stored as "".
    - password holds the bcrypt hash, never the plain text.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from daily_tracker.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    phone: Mapped[str] = mapped_column(String(32), nullable=False, default="", index=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"

"""
Daily Tracker Backend — One-Time Passcode Model
=================================================

What:  ORM model for the `otp_codes` table.

Invariant:
    At most one live row per (identifier, channel). The SQL backend deletes
    any existing row for the pair before inserting, and verification reads
    the most recent row only.

    channel is "email" (password reset, keyed by email address) or "phone"
    (mobile login, keyed by phone number), so the same identifier string
    never collides across the two flows.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from daily_tracker.database import Base


class OtpCode(Base):
    __tablename__ = "otp_codes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    identifier: Mapped[str] = mapped_column(String(255), nullable=False)
    channel: Mapped[str] = mapped_column(String(16), nullable=False)
    code: Mapped[str] = mapped_column(String(16), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_otp_codes_identifier_channel", "identifier", "channel"),
    )

    def __repr__(self) -> str:
        return f"<OtpCode(identifier='{self.identifier}', channel='{self.channel}')>"

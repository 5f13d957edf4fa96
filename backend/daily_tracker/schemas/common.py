"""
Daily Tracker Backend — Shared Schema Base and Envelopes
==========================================================

What:  The camelCase base model plus the error / health envelopes shared by
       every router.
How:   `CamelModel` generates camelCase aliases (`userId`, `createdAt`,
       `newPassword`) while still accepting snake_case field names, so the
       storage layer can build records with plain keyword arguments.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def ensure_utc(value: datetime) -> datetime:
    """
    Attach UTC to naive datetimes.

    SQLite drops tzinfo on DateTime(timezone=True) columns; every timestamp
    this service writes is UTC, so a naive value read back is UTC too.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ErrorResponse(BaseModel):
    """
    Standardized error body for every non-2xx JSON response.

    Example:
        {
            "error": "validation_error",
            "message": "Task with this URL already exists",
            "details": {"field": "url"},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class SuccessResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


class HealthResponse(BaseModel):
    """
    Health / readiness report.

    `degraded` turns true once the store has failed over to memory; from then
    on writes are not durable for the rest of the process lifetime.
    """
    status: str = Field(description="healthy or degraded")
    version: str = Field(description="Application version")
    storage: str = Field(description="Active storage backend: durable or memory")
    degraded: bool = Field(description="True after a durable-store failover")
    connections: int = Field(description="Currently connected WebSocket clients")
    uptime_seconds: float = Field(description="Seconds since service started")

"""
ORM models for the durable backend.

Importing this package registers every table on `Base.metadata`
(used by `create_tables()` and by Alembic's env.py).
"""

from daily_tracker.models.job import Job
from daily_tracker.models.note import Note
from daily_tracker.models.otp_code import OtpCode
from daily_tracker.models.task import Task
from daily_tracker.models.user import User

__all__ = ["User", "OtpCode", "Job", "Task", "Note"]

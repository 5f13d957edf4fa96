"""
Storage package: one data-access interface, two interchangeable backends,
and the fallback adapter that routes between them.

    StorageBackend (base.py)   abstract contract
    ├── SqlBackend (sql.py)        durable, SQLAlchemy async
    ├── MemoryBackend (memory.py)  process memory
    └── FallbackStore (fallback.py) durable first, memory after any fault
"""

from daily_tracker.storage.base import StorageBackend, utcnow
from daily_tracker.storage.fallback import FallbackStore, StoreState
from daily_tracker.storage.memory import MemoryBackend
from daily_tracker.storage.sql import SqlBackend

__all__ = [
    "StorageBackend",
    "MemoryBackend",
    "SqlBackend",
    "FallbackStore",
    "StoreState",
    "utcnow",
]

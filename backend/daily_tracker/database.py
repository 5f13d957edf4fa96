"""
Daily Tracker Backend — Database Engine Management
====================================================

What:  Async SQLAlchemy engine and session factory for the durable backend.
How:   `build_engine()` creates an engine from a URL (PostgreSQL via asyncpg
       in production, SQLite via aiosqlite in tests); `build_session_factory()`
       wraps it. The storage layer (storage/sql.py) opens one session per
       operation, so there is no per-request session dependency.
Who:   main.py at app creation, Alembic's env.py, and the SQL backend tests.

Connection Pooling:
    pool_size / max_overflow / pool_pre_ping come from settings and are only
    passed for server databases. SQLite engines use SQLAlchemy's default pool.
    pool_recycle=3600 recycles connections every hour.
"""

from typing import Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from daily_tracker.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All tables register on this metadata, which Alembic reads for
    --autogenerate and `create_tables()` uses at startup.
    """
    pass


def build_engine(database_url: str, settings: Optional[Settings] = None) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    Raises:
        sqlalchemy.exc.ArgumentError / ImportError when the URL is malformed
        or its driver is not installed. main.py treats either as "no durable
        backend" and starts in memory mode.
    """
    url = make_url(database_url)
    kwargs = {}
    if settings is not None:
        kwargs["echo"] = settings.log_level == "DEBUG"
        if not url.drivername.startswith("sqlite"):
            kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=settings.db_pool_pre_ping,
                pool_recycle=3600,
            )
    return create_async_engine(url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory with expire_on_commit=False.

    Attributes stay readable after commit, which lets the SQL backend convert
    ORM rows into Pydantic records once the transaction is closed.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create every table registered on `Base.metadata` if it is missing."""
    # Model modules must be imported so their tables exist on the metadata.
    from daily_tracker import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine(engine: Optional[AsyncEngine]) -> None:
    """Close all pooled connections; no-op in memory-only mode."""
    if engine is not None:
        await engine.dispose()

"""Persistence: async engine, session factory, and Base for SQLAlchemy ORM.

Engine and session factory are created lazily on first use
(_ensure_engine) so import does not trigger Settings validation. Schema is
created from ORM metadata with create_schema().

The executor and event bus wrap every dispatch and every node in a
SAVEPOINT (session.begin_nested()). pysqlite's own transaction handling
breaks SAVEPOINT, so for SQLite URLs the engine takes over BEGIN itself
(see _enable_sqlite_savepoints). It issues BEGIN IMMEDIATE: the write lock
is taken up front, so concurrent transactions wait on the busy timeout
instead of failing with "database is locked" when a reader tries to write.
"""

import logging
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from statusflow.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Set by _ensure_engine() on first use; avoids get_settings() at import time.
engine: AsyncEngine | None = None
AsyncSessionLocal: async_sessionmaker[AsyncSession] | None = None


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy declarative models."""


def _enable_sqlite_savepoints(async_engine: AsyncEngine) -> None:
    sync_engine = async_engine.sync_engine

    @event.listens_for(sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(settings: Settings) -> AsyncEngine:
    """Create an async engine for settings.database_url."""
    kwargs: dict[str, Any] = {"echo": settings.database_echo}
    if not settings.is_sqlite:
        kwargs.update(
            pool_pre_ping=True,
            pool_size=settings.db_pool_size if settings.db_pool_size is not None else 20,
            max_overflow=(
                settings.db_max_overflow if settings.db_max_overflow is not None else 30
            ),
            pool_recycle=3600,
        )
    async_engine = create_async_engine(settings.database_url, **kwargs)
    if settings.is_sqlite:
        _enable_sqlite_savepoints(async_engine)
    return async_engine


def build_sessionmaker(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def _ensure_engine() -> None:
    """Create engine and AsyncSessionLocal on first use."""
    global engine, AsyncSessionLocal
    if AsyncSessionLocal is not None:
        return
    engine = build_engine(get_settings())
    AsyncSessionLocal = build_sessionmaker(engine)


async def create_schema(async_engine: AsyncEngine) -> None:
    """Create all tables known to Base.metadata (idempotent)."""
    # Register every model on Base.metadata before create_all.
    from statusflow.infrastructure.persistence import models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ensured")


async def dispose_engine() -> None:
    """Dispose the module-level engine (lifespan shutdown)."""
    global engine, AsyncSessionLocal
    if engine is not None:
        await engine.dispose()
    engine = None
    AsyncSessionLocal = None


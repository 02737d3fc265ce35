"""Async SQLAlchemy engine and connection pool ownership.

``Database`` is constructed explicitly at startup and handed to the stores
that need it. It owns the bounded connection pool, hands out sessions that
always return their connection to the pool, and is drained explicitly by
``dispose()`` on shutdown. Once disposal starts, new sessions are refused.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.adapters.db.models import Base
from app.core.config import DatabaseSettings
from app.core.errors import DatabaseClosedError

logger = logging.getLogger(__name__)


def _engine_options(db_settings: DatabaseSettings) -> dict:
    """Build ``create_async_engine`` keyword arguments for the configured URL.

    SQLite (used in tests and local runs) manages its own pool class and
    rejects the queue-pool sizing arguments.
    """
    options: dict = {"echo": db_settings.echo}
    if make_url(db_settings.url).get_backend_name() == "sqlite":
        return options

    options.update(
        pool_size=db_settings.pool_size,
        max_overflow=db_settings.max_overflow,
        pool_timeout=db_settings.pool_timeout_seconds,
        pool_recycle=db_settings.pool_recycle_seconds,
        pool_pre_ping=True,
    )
    return options


class Database:
    """Owner of the async engine, its pool, and the session factory."""

    def __init__(self, db_settings: DatabaseSettings) -> None:
        self._engine = create_async_engine(db_settings.url, **_engine_options(db_settings))
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def engine(self):
        return self._engine

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session; commit on success, roll back on error, always close.

        Raises:
            DatabaseClosedError: If the pool is shutting down or shut down.
        """
        if self._closed:
            raise DatabaseClosedError(
                code="database_closed",
                message="Database connection pool is closed",
            )

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except BaseException:
                await session.rollback()
                raise

    async def ping(self) -> bool:
        """Run a trivial query to confirm the store is reachable."""
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as exc:
            logger.error(
                "database.unreachable",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            return False
        logger.info("database.connected")
        return True

    async def create_schema(self) -> None:
        """Create missing tables for the account model."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database.schema_ready")

    async def dispose(self) -> None:
        """Refuse new sessions and close every pooled connection."""
        if self._closed:
            return
        self._closed = True
        await self._engine.dispose()
        logger.info("database.pool_closed")

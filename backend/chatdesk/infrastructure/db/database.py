"""
Database Configuration for ChatDesk

One async engine per process, built lazily from DATABASE_URL. The storage
gateway opens a short-lived session per call through `get_session_context`.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from chatdesk.config.settings import settings
from chatdesk.infrastructure.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_ASYNC_SCHEMES = {
    "postgresql://": "postgresql+asyncpg://",
    "postgres://": "postgresql+asyncpg://",
}


def to_async_url(database_url: str) -> str:
    """Force the asyncpg driver onto plain postgres URLs."""
    for scheme, async_scheme in _ASYNC_SCHEMES.items():
        if database_url.startswith(scheme):
            return async_scheme + database_url[len(scheme):]
    return database_url


class DatabaseManager:
    """
    Owns the engine and the session factory.

    Singleton so the ingestion loop, the subscription job and request
    handlers all draw from the same pool.
    """

    _instance: Optional["DatabaseManager"] = None
    _engine: Optional[AsyncEngine] = None
    _session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    def __new__(cls) -> "DatabaseManager":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._connect()
        return self._session_factory

    def _connect(self) -> None:
        if not settings.database_url:
            raise ConfigurationError(
                "DATABASE_URL is required",
                missing_keys=["DATABASE_URL"],
            )

        self._engine = create_async_engine(
            to_async_url(settings.database_url),
            echo=settings.database_echo,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout,
            pool_pre_ping=True,
        )
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(
            f"[DB] Engine created (pool_size={settings.database_pool_size}, "
            f"max_overflow={settings.database_max_overflow})"
        )

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None


def get_db_manager() -> DatabaseManager:
    return DatabaseManager()


@asynccontextmanager
async def get_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Session scoped to one unit of work: commit on success, rollback on error.

    Usage:
        async with get_session_context() as session:
            session.add(record)
    """
    async with get_db_manager().session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Open the pool and check connectivity. Raises if the database is unreachable."""
    async with get_db_manager().session_factory() as session:
        await session.execute(text("SELECT 1"))


async def close_db() -> None:
    await get_db_manager().dispose()

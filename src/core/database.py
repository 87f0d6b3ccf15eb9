"""
Engine and session factory for the stats store.

One async engine per process. Repositories receive the session factory
and open a short session per operation.
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
from sqlalchemy.pool import NullPool

from ..models.base import Base

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _engine_options(database_url: str) -> dict:
    # SQLite files are opened per connection; server databases keep a pool
    if database_url.startswith("sqlite"):
        return {"echo": False, "poolclass": NullPool}
    return {"echo": False, "pool_pre_ping": True}


async def init_database(database_url: Optional[str] = None) -> None:
    """Create the engine and session factory, then create missing tables."""
    global _engine, _session_factory

    if database_url is None:
        from .config import get_settings

        database_url = get_settings().database_url

    logger.info(f"Initializing stats database: {database_url}")
    _engine = create_async_engine(database_url, **_engine_options(database_url))
    _session_factory = async_sessionmaker(
        _engine, class_=AsyncSession, expire_on_commit=False
    )

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Stats tables created/verified")


async def close_database() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("Database connection closed")
    _engine = None
    _session_factory = None


async def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory, initializing from settings on first use."""
    if _session_factory is None:
        await init_database()
    return _session_factory


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    factory = await get_session_factory()
    async with factory() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise


async def health_check() -> bool:
    """Run ``SELECT 1``; any failure is logged and reported as unhealthy."""
    try:
        async with get_db_session() as session:
            value = (await session.execute(text("SELECT 1"))).scalar()
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        return False

    if value != 1:
        logger.warning(f"Database health check returned unexpected value: {value}")
        return False
    return True

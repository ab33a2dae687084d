"""
Process-wide engine and session factory.

Routers get sessions through ``get_session``; background jobs and the
activity cache open their own sessions from ``async_session_maker``.
"""

from __future__ import annotations

from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from projectbrain.core.logging_config import get_logger
from projectbrain.server.core.config import settings

from .utils import create_all, create_engine, create_sessionmaker, ping

logger = get_logger(__name__)

_db = settings.database
engine = create_engine(_db.url, pool_size=_db.pool_size, max_overflow=_db.max_overflow, echo=_db.echo)
async_session_maker = create_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request."""
    async with async_session_maker() as session:
        yield session


async def init_db() -> None:
    """Create tables on SQLite. Postgres is migrated by Alembic before startup."""
    if engine.url.get_backend_name() == "sqlite":
        await create_all(engine)
        logger.info("SQLite schema created")


async def check_database() -> Optional[str]:
    """Connectivity check for the readiness endpoint."""
    return await ping(engine)

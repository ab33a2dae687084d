"""
Engine and session factory helpers.

``create_engine`` accepts the URL forms used by hosting providers and picks
pool settings per backend; ``create_all`` builds the schema for SQLite
development databases and tests.
"""

from __future__ import annotations

import re
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from projectbrain.core.logging_config import get_logger

from .base import Base

logger = get_logger(__name__)

_POSTGRES_SCHEME = re.compile(r"^postgres(?:ql)?(?:\+[a-z0-9_]+)?://")


def normalize_url(db_url: str) -> str:
    """Force the asyncpg driver on Postgres URLs; other URLs are unchanged."""
    return _POSTGRES_SCHEME.sub("postgresql+asyncpg://", db_url, count=1)


def create_engine(
    db_url: str, pool_size: int = 5, max_overflow: int = 10, echo: bool = False
) -> AsyncEngine:
    """Create the async engine for ``db_url``.

    SQLite engines skip the pool settings, which only apply to Postgres.

    Args:
        db_url: Database URL, e.g. ``postgres://...`` or ``sqlite+aiosqlite:///./dev.db``
        pool_size: Persistent connections per process
        max_overflow: Connections allowed above ``pool_size``
        echo: Log every statement

    Returns:
        Configured AsyncEngine
    """
    url = normalize_url(db_url)
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo, connect_args={"check_same_thread": False})
    return create_async_engine(
        url, echo=echo, pool_pre_ping=True, pool_size=pool_size, max_overflow=max_overflow
    )


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Services keep using entities after the repository commit
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_all(engine: AsyncEngine) -> None:
    """Create every table registered under ``entities``."""
    from . import entities  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ping(engine: AsyncEngine) -> Optional[str]:
    """Run ``SELECT 1``. Returns None when reachable, else the error text."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return None
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Database ping failed: {e}")
        return str(e)

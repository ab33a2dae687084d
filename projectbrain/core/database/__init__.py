"""
Persistence for ProjectBrain.

Entities live in ``entities/`` and their queries in ``repositories/``, one
module per domain. Services receive repositories through ``SqlRepoBundle``.
"""

from .base import Base
from .session import async_session_maker, check_database, engine, get_session, init_db
from .utils import create_all, create_engine, create_sessionmaker, normalize_url

__all__ = [
    "Base",
    "async_session_maker",
    "check_database",
    "create_all",
    "create_engine",
    "create_sessionmaker",
    "engine",
    "get_session",
    "init_db",
    "normalize_url",
]

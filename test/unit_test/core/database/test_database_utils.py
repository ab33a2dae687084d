import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from projectbrain.core.database import create_engine, normalize_url
from projectbrain.core.database.utils import ping


@pytest.mark.parametrize(
    "url",
    [
        "postgres://u:p@db:5432/brain",
        "postgresql://u:p@db:5432/brain",
        "postgresql+psycopg://u:p@db:5432/brain",
    ],
)
def test_postgres_urls_use_asyncpg(url):
    assert normalize_url(url) == "postgresql+asyncpg://u:p@db:5432/brain"


def test_sqlite_url_is_unchanged():
    assert normalize_url("sqlite+aiosqlite:///./dev.db") == "sqlite+aiosqlite:///./dev.db"


@pytest.mark.asyncio
async def test_ping_reachable_database():
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    try:
        assert await ping(engine) is None
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_ping_reports_unreachable_database(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/missing/dir/db.sqlite")
    try:
        assert await ping(engine)
    finally:
        await engine.dispose()

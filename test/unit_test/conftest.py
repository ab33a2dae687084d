import json
from types import SimpleNamespace
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlmodel.pool import StaticPool

from projectbrain.agent_core.llm_client import AgentLLMClient
from projectbrain.core.database import create_all, create_sessionmaker
from projectbrain.core.database.entities.connections import Connection, ConnectionStatus
from projectbrain.core.database.entities.users import User
from projectbrain.core.database.repositories import SqlRepoBundle, build_sql_repos_from_session
from projectbrain.server.core.config import OpenAIConfig

# In-memory SQLite shared by every connection of one test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

UserFactory = Callable[..., Awaitable[User]]
ConnectionFactory = Callable[..., Awaitable[Connection]]


@pytest_asyncio.fixture
async def test_engine():
    """Create a fresh database with every table for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    return create_sessionmaker(test_engine)


@pytest_asyncio.fixture(name="session")
async def session_fixture(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def repos(session: AsyncSession) -> SqlRepoBundle:
    return build_sql_repos_from_session(session=session)


@pytest_asyncio.fixture
async def make_user(repos: SqlRepoBundle) -> UserFactory:
    """Insert a user. Emails default to ``{id}@example.com``."""

    async def _make(
        user_id: str,
        roles: Optional[List[str]] = None,
        full_name: Optional[str] = None,
        **fields,
    ) -> User:
        user = User(
            id=user_id,
            email=fields.pop("email", f"{user_id}@example.com"),
            full_name=full_name if full_name is not None else user_id.title(),
            roles=roles or ["user"],
            **fields,
        )
        return await repos.users.create(user)

    return _make


@pytest_asyncio.fixture
async def make_connection(repos: SqlRepoBundle) -> ConnectionFactory:
    """Insert a connection between existing users, accepted by default."""

    async def _make(user_id: str, coach_id: str, status: str = ConnectionStatus.ACCEPTED.value) -> Connection:
        return await repos.connections.create(Connection(user_id=user_id, coach_id=coach_id, status=status))

    return _make


def make_completion(
    content: Optional[str] = None, tool_calls: Iterable[Tuple[str, Dict[str, Any]]] = (), raw_arguments=None
):
    """Shape of an ``openai`` chat completion with optional function calls."""
    calls = [
        SimpleNamespace(
            id=f"call_{i}",
            function=SimpleNamespace(name=name, arguments=raw_arguments or json.dumps(arguments)),
        )
        for i, (name, arguments) in enumerate(tool_calls)
    ]
    message = SimpleNamespace(content=content, tool_calls=calls or None)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=SimpleNamespace(total_tokens=42))


@pytest.fixture(name="make_completion")
def make_completion_fixture():
    return make_completion


@pytest.fixture
def openai_create() -> AsyncMock:
    """Stands in for ``AsyncOpenAI().chat.completions.create``."""
    return AsyncMock()


@pytest.fixture
def llm(openai_create) -> AgentLLMClient:
    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=openai_create)))
    return AgentLLMClient(OpenAIConfig(api_key="sk-test", model="gpt-test"), client=client)

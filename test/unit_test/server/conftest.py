from typing import AsyncGenerator, Dict
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from projectbrain.agent_core.service import AgentService
from projectbrain.core.database import get_session
from projectbrain.server.core.config import StorageConfig
from projectbrain.server.main import app
from projectbrain.server.services.deps import (
    FeatureGateDep,
    ReposDep,
    get_agent_service,
    get_resource_service,
    get_stripe_client,
)
from projectbrain.services.resources import ResourceService
from projectbrain.services.storage import StorageClient
from projectbrain.services.stripe_client import StripeClient

API = "/api/v1"


def as_user(user_id: str) -> Dict[str, str]:
    return {"X-User-Id": user_id}


@pytest.fixture(name="as_user")
def as_user_fixture():
    return as_user


@pytest.fixture
def stripe_client() -> AsyncMock:
    client = AsyncMock(spec=StripeClient)
    client.create_customer.return_value = "cus_test"
    client.create_checkout_session.return_value = "https://checkout.stripe.test/c/1"
    return client


@pytest_asyncio.fixture
async def client(session_factory, stripe_client, llm, tmp_path) -> AsyncGenerator[AsyncClient, None]:
    """API client bound to the per-test database, with outbound integrations replaced."""

    async def _session():
        async with session_factory() as session:
            yield session

    def _agent_service(repos: ReposDep) -> AgentService:
        return AgentService(repos, llm)

    def _resource_service(repos: ReposDep, feature_gate: FeatureGateDep) -> ResourceService:
        return ResourceService(repos, StorageClient(StorageConfig(root=str(tmp_path))), feature_gate=feature_gate)

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_stripe_client] = lambda: stripe_client
    app.dependency_overrides[get_agent_service] = _agent_service
    app.dependency_overrides[get_resource_service] = _resource_service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def register(client):
    """Register a user through the API, optionally granting roles directly."""

    async def _register(user_id: str, full_name: str = "", **fields) -> Dict:
        body = {"email": f"{user_id}@example.com", "full_name": full_name or user_id.title(), **fields}
        response = await client.post(f"{API}/users", json=body, headers=as_user(user_id))
        assert response.status_code == 201, response.text
        return response.json()

    return _register

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import IntegrityError

from projectbrain.core.errors import LimitExceededException
from projectbrain.server.exception_handlers import setup_exception_handlers
from projectbrain.server.middleware import LogfireMiddleware, UserActivityMiddleware


def _build_app(activity=None) -> FastAPI:
    app = FastAPI()

    @app.get("/ok")
    async def ok():
        return {"ok": True}

    @app.get("/limited")
    async def limited():
        raise LimitExceededException("Too many requests")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    @app.get("/conflict")
    async def conflict():
        raise IntegrityError("INSERT INTO tags", {}, Exception("UNIQUE constraint failed"))

    app.add_middleware(LogfireMiddleware)
    app.add_middleware(UserActivityMiddleware, activity_factory=lambda: activity)
    setup_exception_handlers(app)
    return app


def _client(app: FastAPI) -> AsyncClient:
    # Starlette re-raises unhandled errors after the 500 response is sent
    return AsyncClient(transport=ASGITransport(app=app, raise_app_exceptions=False), base_url="http://test")


@pytest.mark.asyncio
async def test_process_time_header():
    async with _client(_build_app()) as client:
        response = await client.get("/ok")

    assert response.status_code == 200
    assert float(response.headers["X-Process-Time"]) >= 0


@pytest.mark.asyncio
async def test_app_exception_body():
    async with _client(_build_app()) as client:
        response = await client.get("/limited")

    assert response.status_code == 429
    assert response.json() == {"error": {"code": "LIMIT_EXCEEDED", "message": "Too many requests"}}


@pytest.mark.asyncio
async def test_integrity_error_is_a_conflict():
    async with _client(_build_app()) as client:
        response = await client.get("/conflict")

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


@pytest.mark.asyncio
async def test_unhandled_exception_returns_error_id():
    async with _client(_build_app()) as client:
        response = await client.get("/boom")

    body = response.json()
    assert response.status_code == 500
    assert body["detail"] == "Internal server error"
    assert body["error_type"] == "RuntimeError"
    assert isinstance(body["error_id"], int)


@pytest.mark.asyncio
async def test_activity_is_recorded_for_identified_requests():
    activity = AsyncMock()
    async with _client(_build_app(activity)) as client:
        await client.get("/ok", headers={"X-User-Id": "alice"})
        await client.get("/ok")

    activity.update_last_activity.assert_awaited_once_with("alice")


@pytest.mark.asyncio
async def test_activity_failure_does_not_fail_request():
    activity = AsyncMock()
    activity.update_last_activity.side_effect = RuntimeError("redis down")
    async with _client(_build_app(activity)) as client:
        response = await client.get("/ok", headers={"X-User-Id": "alice"})

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_main_app_reports_process_time(client):
    response = await client.get("/health")

    assert "X-Process-Time" in response.headers

from unittest.mock import AsyncMock

import pytest

from projectbrain.core.errors import AppException
from projectbrain.server.api.v1 import health
from projectbrain.server.main import app
from projectbrain.server.services.deps import get_email_service
from projectbrain.services.email import MailgunEmailService

API = "/api/v1"

USERS = f"{API}/users"


@pytest.mark.asyncio
async def test_health_and_version(client):
    assert (await client.get("/health")).json() == {"status": "ok"}
    assert (await client.get("/version")).json() == {"version": "0.1.0", "schema_version": "v1"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "db_error,redis_ok,status_code,body",
    [
        (None, True, 200, {"status": "ok", "database": True, "redis": True}),
        (None, False, 200, {"status": "ok", "database": True, "redis": False}),
        ("connection refused", True, 503, {"status": "unavailable", "database": False, "redis": True}),
    ],
)
async def test_readiness(client, monkeypatch, db_error, redis_ok, status_code, body):
    monkeypatch.setattr(health, "check_database", AsyncMock(return_value=db_error))
    monkeypatch.setattr(health, "ping_redis", AsyncMock(return_value=redis_ok))

    response = await client.get("/health/ready")

    assert response.status_code == status_code
    assert response.json() == body


@pytest.mark.asyncio
async def test_identity_header_is_required(client):
    response = await client.get(f"{USERS}/me")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_unregistered_identity(client, as_user):
    response = await client.get(f"{USERS}/me", headers=as_user("ghost"))

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "USER_NOT_FOUND"


@pytest.mark.asyncio
async def test_register_and_read_profile(client, register, as_user):
    created = await register("alice", "Alice Smith", city="Leeds")

    assert created["id"] == "alice"
    assert created["is_onboarded"] is False
    me = (await client.get(f"{USERS}/me", headers=as_user("alice"))).json()
    assert me["full_name"] == "Alice Smith"
    assert me["city"] == "Leeds"
    assert (await client.get(f"{USERS}/roles", headers=as_user("alice"))).json() == ["user"]


@pytest.mark.asyncio
async def test_duplicate_registration(client, register, as_user):
    await register("alice")

    same_id = await client.post(USERS, json={"email": "other@example.com"}, headers=as_user("alice"))
    same_email = await client.post(USERS, json={"email": "alice@example.com"}, headers=as_user("bob"))

    assert same_id.status_code == 409
    assert same_email.status_code == 409
    assert same_email.json()["error"]["code"] == "USER_EXISTS"


@pytest.mark.asyncio
async def test_invalid_email_is_rejected(client, as_user):
    response = await client.post(USERS, json={"email": "not-an-email"}, headers=as_user("alice"))

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_partial_update_and_onboarding(client, register, as_user):
    await register("alice", "Alice", city="Leeds")

    updated = await client.put(f"{USERS}/me", json={"favorite_colour": "green"}, headers=as_user("alice"))
    onboarded = await client.post(f"{USERS}/me/onboarding", headers=as_user("alice"))

    assert updated.json()["favorite_colour"] == "green"
    assert updated.json()["city"] == "Leeds"
    assert onboarded.json()["is_onboarded"] is True


class TestAdminUsers:
    @pytest.mark.asyncio
    async def test_requires_admin(self, client, register, as_user):
        await register("alice")

        response = await client.get(f"{API}/admin/users", headers=as_user("alice"))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_admin_manages_users(self, client, register, make_user, as_user):
        await make_user("root", roles=["user", "admin"])
        for name in ("alice", "bob", "carol"):
            await register(name)
        admin = as_user("root")

        page = (await client.get(f"{API}/admin/users?page=2&page_size=2", headers=admin)).json()
        assert page["total_count"] == 4
        assert page["total_pages"] == 2
        assert page["has_previous_page"] is True
        assert len(page["items"]) == 2

        roles = await client.put(f"{API}/admin/users/bob/roles", json={"roles": ["user", "coach"]}, headers=admin)
        assert roles.json()["roles"] == ["user", "coach"]
        bad = await client.put(f"{API}/admin/users/bob/roles", json={"roles": ["wizard"]}, headers=admin)
        assert bad.status_code == 400

        assert (await client.delete(f"{API}/admin/users/carol", headers=admin)).status_code == 204
        missing = await client.get(f"{API}/admin/users/carol", headers=admin)
        assert missing.status_code == 404
        assert missing.json()["error"]["code"] == "USER_NOT_FOUND"


@pytest.mark.asyncio
@pytest.mark.parametrize("failure", [None, AppException("EMAIL_SEND_FAILED", "Failed to send email", 502)])
async def test_registration_sends_welcome_email(client, as_user, failure):
    email = AsyncMock(spec=MailgunEmailService)
    email.send_welcome_email.side_effect = failure
    app.dependency_overrides[get_email_service] = lambda: email

    response = await client.post(
        USERS, json={"email": "alice@example.com", "full_name": "Alice"}, headers=as_user("alice")
    )

    assert response.status_code == 201
    email.send_welcome_email.assert_awaited_once_with("alice@example.com", "Alice")


@pytest.mark.asyncio
async def test_registration_without_mailgun_sends_nothing(register):
    # Mailgun is not configured in the test environment
    assert get_email_service() is None
    await register("alice")

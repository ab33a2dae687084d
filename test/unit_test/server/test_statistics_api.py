from datetime import datetime

import pytest

from projectbrain.server.core.config import settings

API = "/api/v1"
STATS = f"{API}/statistics"


@pytest.fixture
async def admin(make_user):
    return await make_user("root", roles=["user", "admin"], last_activity_at=datetime.utcnow())


async def _count(client, as_user, path, user_id="root", **params):
    response = await client.get(f"{STATS}/{path}", params=params, headers=as_user(user_id))
    assert response.status_code == 200, response.text
    return response.json()["count"]


@pytest.mark.asyncio
async def test_admin_counts(client, admin, register, as_user):
    await register("alice")
    await register("coach")
    await client.put(f"{API}/coaches/me", json={}, headers=as_user("coach"))

    assert await _count(client, as_user, "admin/users") == 3
    assert await _count(client, as_user, "admin/coaches") == 1
    assert await _count(client, as_user, "admin/normal-users") == 1
    assert await _count(client, as_user, "admin/logged-in-users") == 1


@pytest.mark.asyncio
async def test_quiz_counts(client, admin, as_user):
    quiz = await client.post(
        f"{API}/quizzes",
        json={"title": "Check-in", "questions": [{"label": "Mood"}]},
        headers=as_user("root"),
    )
    await client.post(f"{API}/quizzes/{quiz.json()['id']}/responses", json={"answers": {}}, headers=as_user("root"))

    assert await _count(client, as_user, "admin/quizzes") == 1
    assert await _count(client, as_user, "admin/quiz-responses") == 1
    assert await _count(client, as_user, "admin/quiz-responses", period="today") == 1
    unknown = await client.get(f"{STATS}/admin/quiz-responses", params={"period": "decade"}, headers=as_user("root"))
    assert unknown.status_code == 400


@pytest.mark.asyncio
async def test_admin_only(client, register, as_user):
    await register("alice")

    response = await client.get(f"{STATS}/admin/users", headers=as_user("alice"))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_user_and_coach_counts(client, register, as_user):
    await register("alice")
    await register("bob")
    await register("coach")
    await client.put(f"{API}/coaches/me", json={}, headers=as_user("coach"))
    await client.post(f"{API}/coaches/coach/connections", json={}, headers=as_user("alice"))
    await client.post(f"{API}/coaches/coach/connections", json={}, headers=as_user("bob"))
    await client.post(f"{API}/coaches/clients/alice/accept", headers=as_user("coach"))
    await client.post(
        f"{API}/resources/upload", files={"file": ("a.txt", b"a", "text/plain")}, headers=as_user("alice")
    )

    assert await _count(client, as_user, "coach/clients", "coach") == 1
    assert await _count(client, as_user, "coach/pending-clients", "coach") == 1
    assert await _count(client, as_user, "resources", "alice") == 1
    assert (await client.get(f"{STATS}/coach/clients", headers=as_user("alice"))).status_code == 403


class TestFeatureFlagsApi:
    @pytest.mark.asyncio
    async def test_flags_need_no_user(self, client):
        flags = await client.get(f"{API}/feature-flags")

        assert flags.json() == {"agent": True, "emails": True, "push_notifications": True}

    @pytest.mark.asyncio
    async def test_single_flag(self, client, monkeypatch):
        monkeypatch.setattr(settings, "emails_enabled", False)

        emails = await client.get(f"{API}/feature-flags/emails")
        unknown = await client.get(f"{API}/feature-flags/teleport")

        assert emails.json() == {"key": "emails", "enabled": False}
        assert unknown.json() == {"key": "teleport", "enabled": False}

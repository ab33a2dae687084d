import pytest

API = "/api/v1"
COACHES = f"{API}/coaches"


@pytest.fixture
async def coach(client, register, as_user):
    await register("coach", "Coach Carter", city="Leeds", country="UK")
    await client.post(f"{API}/users/me/onboarding", headers=as_user("coach"))
    response = await client.put(
        f"{COACHES}/me",
        json={"qualifications": ["ICF"], "specialisms": ["ADHD"], "age_groups": ["adults"]},
        headers=as_user("coach"),
    )
    assert response.status_code == 200, response.text
    return response.json()


async def _connect(client, as_user, user_id, coach_id="coach"):
    return await client.post(
        f"{COACHES}/{coach_id}/connections", json={"message": "Hi!"}, headers=as_user(user_id)
    )


@pytest.mark.asyncio
async def test_profile_upsert_grants_coach_role(client, coach, register, as_user):
    await register("alice")

    assert coach["availability_status"] == "available"
    assert "coach" in (await client.get(f"{API}/users/roles", headers=as_user("coach"))).json()
    profile = await client.get(f"{COACHES}/coach/profile", headers=as_user("alice"))
    assert profile.json()["specialisms"] == ["ADHD"]
    assert (await client.get(f"{COACHES}/alice/profile", headers=as_user("alice"))).status_code == 404


@pytest.mark.asyncio
async def test_search(client, coach, register, as_user):
    await register("alice")

    hits = await client.get(f"{COACHES}/search", params={"city": "lee", "specialisms": ["adhd"]}, headers=as_user("alice"))
    misses = await client.get(f"{COACHES}/search", params={"country": "France"}, headers=as_user("alice"))

    assert [c["user_id"] for c in hits.json()] == ["coach"]
    assert hits.json()[0]["full_name"] == "Coach Carter"
    assert misses.json() == []


@pytest.mark.asyncio
async def test_availability(client, coach, register, as_user):
    await register("alice")
    headers = as_user("coach")

    assert (await client.put(f"{COACHES}/availability/status", json={"status": "busy"}, headers=headers)).status_code == 200
    assert (await client.get(f"{COACHES}/availability/status", headers=headers)).json() == {"status": "busy"}
    invalid = await client.put(f"{COACHES}/availability/status", json={"status": "asleep"}, headers=headers)
    assert invalid.status_code == 400
    forbidden = await client.get(f"{COACHES}/availability/status", headers=as_user("alice"))
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_connection_lifecycle(client, coach, register, as_user):
    await register("alice")

    requested = await _connect(client, as_user, "alice")
    assert requested.status_code == 201
    assert requested.json()["status"] == "pending"
    assert requested.json()["request_message"] == "Hi!"

    status = await client.get(f"{COACHES}/coach/connection-status", headers=as_user("alice"))
    assert status.json() == {"coach_id": "coach", "status": "pending", "is_connected": False}
    clients = await client.get(f"{COACHES}/clients", headers=as_user("coach"))
    assert [c["user_id"] for c in clients.json()] == ["alice"]

    accepted = await client.post(f"{COACHES}/clients/alice/accept", headers=as_user("coach"))
    assert accepted.json() == {"message": "Connection accepted"}
    again = await client.post(f"{COACHES}/clients/alice/accept", headers=as_user("coach"))
    assert again.status_code == 404

    connected = await client.get(f"{COACHES}/connected", headers=as_user("alice"))
    assert connected.json() == [{"coach_id": "coach", "status": "accepted", "is_connected": True}]

    removed = await client.delete(f"{COACHES}/coach/connections", headers=as_user("alice"))
    assert removed.status_code == 200
    status = await client.get(f"{COACHES}/coach/connection-status", headers=as_user("alice"))
    assert status.json()["status"] is None


@pytest.mark.asyncio
async def test_rejected_request_can_be_renewed(client, coach, register, as_user):
    await register("alice")
    first = await _connect(client, as_user, "alice")

    await client.post(f"{COACHES}/clients/alice/reject", headers=as_user("coach"))
    renewed = await _connect(client, as_user, "alice")

    assert renewed.json()["id"] == first.json()["id"]
    assert renewed.json()["status"] == "pending"


@pytest.mark.asyncio
async def test_invalid_connection_targets(client, coach, register, as_user):
    await register("alice")
    await register("bob")

    to_self = await _connect(client, as_user, "coach")
    not_a_coach = await _connect(client, as_user, "alice", coach_id="bob")

    assert to_self.json()["error"]["code"] == "CANNOT_CONNECT_TO_SELF"
    assert not_a_coach.status_code == 404
    assert not_a_coach.json()["error"]["code"] == "COACH_NOT_FOUND"


@pytest.mark.asyncio
async def test_free_coach_client_limit(client, coach, register, as_user):
    for name in ("u1", "u2", "u3", "u4"):
        await register(name)
    for name in ("u1", "u2", "u3"):
        await _connect(client, as_user, name)
        await client.post(f"{COACHES}/clients/{name}/accept", headers=as_user("coach"))

    blocked = await _connect(client, as_user, "u4")

    assert blocked.status_code == 400
    assert blocked.json()["error"]["code"] == "CONNECTION_LIMIT_REACHED"
    assert "client connections" in blocked.json()["error"]["message"]


@pytest.mark.asyncio
async def test_ratings(client, coach, register, as_user):
    await register("alice")
    await register("bob")
    await _connect(client, as_user, "alice")

    not_connected = await client.post(f"{COACHES}/coach/ratings", json={"rating": 5}, headers=as_user("alice"))
    assert not_connected.json()["error"]["code"] == "NOT_CONNECTED"

    await client.post(f"{COACHES}/clients/alice/accept", headers=as_user("coach"))
    out_of_range = await client.post(f"{COACHES}/coach/ratings", json={"rating": 9}, headers=as_user("alice"))
    assert out_of_range.json()["error"]["code"] == "INVALID_RATING"

    rated = await client.post(
        f"{COACHES}/coach/ratings", json={"rating": 4, "feedback": "Helpful"}, headers=as_user("alice")
    )
    assert rated.status_code == 200
    mine = await client.get(f"{COACHES}/coach/ratings/me", headers=as_user("alice"))
    assert mine.json()["feedback"] == "Helpful"
    assert (await client.get(f"{COACHES}/coach/ratings/me", headers=as_user("bob"))).status_code == 404

    summary = (await client.get(f"{COACHES}/ratings/mine", headers=as_user("coach"))).json()
    assert summary["average_rating"] == 4.0
    assert summary["rating_count"] == 1
    assert [r["user_id"] for r in summary["ratings"]] == ["alice"]


@pytest.mark.asyncio
async def test_connections_by_id(client, coach, register, as_user):
    await register("alice")
    await register("mallory")
    connection_id = (await _connect(client, as_user, "alice")).json()["id"]

    listed = await client.get(f"{API}/connections", headers=as_user("coach"))
    assert [c["id"] for c in listed.json()] == [connection_id]
    assert (await client.get(f"{API}/connections/{connection_id}", headers=as_user("mallory"))).status_code == 403
    assert (await client.get(f"{API}/connections/missing", headers=as_user("alice"))).status_code == 404

    deleted = await client.delete(f"{API}/connections/{connection_id}", headers=as_user("coach"))
    assert deleted.status_code == 200
    cancelled = await client.get(f"{API}/connections/{connection_id}", headers=as_user("alice"))
    assert cancelled.json()["status"] == "cancelled"

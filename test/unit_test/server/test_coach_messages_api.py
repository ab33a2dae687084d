import pytest

API = "/api/v1"
MESSAGES = f"{API}/coach-messages"


@pytest.fixture
async def connection_id(client, register, as_user):
    await register("alice", "Alice Smith")
    await register("coach", "Coach Carter")
    await register("mallory")
    await client.put(f"{API}/coaches/me", json={}, headers=as_user("coach"))
    connection = await client.post(f"{API}/coaches/coach/connections", json={}, headers=as_user("alice"))
    await client.post(f"{API}/coaches/clients/alice/accept", headers=as_user("coach"))
    return connection.json()["id"]


async def _send(client, as_user, sender, connection_id, content):
    response = await client.post(
        MESSAGES, json={"connection_id": connection_id, "content": content}, headers=as_user(sender)
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_send_and_page(client, connection_id, as_user):
    first = await _send(client, as_user, "alice", connection_id, "Hello coach")
    await _send(client, as_user, "coach", connection_id, "Hi Alice")

    assert first["sender_id"] == "alice"
    assert first["status"] == "sent"
    page = await client.get(f"{MESSAGES}/conversation/{connection_id}", headers=as_user("alice"))
    assert [m["content"] for m in page.json()] == ["Hi Alice", "Hello coach"]
    short = await client.get(
        f"{MESSAGES}/conversation/{connection_id}", params={"page_size": 1}, headers=as_user("coach")
    )
    assert len(short.json()) == 1


@pytest.mark.asyncio
async def test_outsiders_are_rejected(client, connection_id, as_user):
    await _send(client, as_user, "alice", connection_id, "Hello coach")

    read = await client.get(f"{MESSAGES}/conversation/{connection_id}", headers=as_user("mallory"))
    sent = await client.post(
        MESSAGES, json={"connection_id": connection_id, "content": "psst"}, headers=as_user("mallory")
    )
    missing = await client.get(f"{MESSAGES}/conversation/nope", headers=as_user("alice"))

    assert read.status_code == 403
    assert sent.status_code == 403
    assert missing.json()["error"]["code"] == "CONNECTION_NOT_FOUND"


@pytest.mark.asyncio
async def test_empty_content_is_rejected(client, connection_id, as_user):
    response = await client.post(MESSAGES, json={"connection_id": connection_id, "content": ""}, headers=as_user("alice"))

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_search(client, connection_id, as_user):
    await _send(client, as_user, "alice", connection_id, "Feeling ANXIOUS today")
    await _send(client, as_user, "coach", connection_id, "Let's talk")

    hits = await client.get(
        f"{MESSAGES}/conversation/{connection_id}/search", params={"term": "anxious"}, headers=as_user("coach")
    )
    blank = await client.get(f"{MESSAGES}/conversation/{connection_id}/search", headers=as_user("coach"))

    assert [m["content"] for m in hits.json()] == ["Feeling ANXIOUS today"]
    assert blank.json() == []


@pytest.mark.asyncio
async def test_receipts(client, connection_id, as_user):
    message = await _send(client, as_user, "alice", connection_id, "Hello coach")
    url = f"{MESSAGES}/{message['id']}"

    assert (await client.put(f"{url}/delivered", headers=as_user("alice"))).status_code == 404
    assert (await client.put(f"{url}/delivered", headers=as_user("mallory"))).status_code == 403
    assert (await client.put(f"{url}/delivered", headers=as_user("coach"))).status_code == 200
    assert (await client.put(f"{url}/read", headers=as_user("coach"))).status_code == 200

    page = await client.get(f"{MESSAGES}/conversation/{connection_id}", headers=as_user("alice"))
    assert page.json()[0]["status"] == "read"
    assert page.json()[0]["read_at"] is not None


@pytest.mark.asyncio
async def test_conversation_inbox_and_mark_read(client, connection_id, as_user):
    await _send(client, as_user, "alice", connection_id, "One")
    await _send(client, as_user, "alice", connection_id, "Two")

    inbox = await client.get(f"{MESSAGES}/conversations", params={"is_coach": True}, headers=as_user("coach"))
    [summary] = inbox.json()
    assert summary["other_person_name"] == "Alice Smith"
    assert summary["last_message_snippet"] == "Two"
    assert summary["unread_count"] == 2

    marked = await client.put(f"{MESSAGES}/conversation/{connection_id}/read", headers=as_user("coach"))
    assert marked.json() == {"count": 2}
    inbox = await client.get(f"{MESSAGES}/conversations", params={"is_coach": True}, headers=as_user("coach"))
    assert inbox.json()[0]["unread_count"] == 0

    user_inbox = await client.get(f"{MESSAGES}/conversations", headers=as_user("alice"))
    assert user_inbox.json()[0]["other_person_name"] == "Coach Carter"


@pytest.mark.asyncio
async def test_only_sender_deletes(client, connection_id, as_user):
    message = await _send(client, as_user, "alice", connection_id, "Oops")

    assert (await client.delete(f"{MESSAGES}/{message['id']}", headers=as_user("coach"))).status_code == 403
    assert (await client.delete(f"{MESSAGES}/{message['id']}", headers=as_user("alice"))).status_code == 204
    assert (await client.delete(f"{MESSAGES}/{message['id']}", headers=as_user("alice"))).status_code == 404


@pytest.mark.asyncio
async def test_free_coach_message_limit(client, connection_id, as_user):
    for i in range(10):
        await _send(client, as_user, "coach", connection_id, f"Tip {i}")

    blocked = await client.post(
        MESSAGES, json={"connection_id": connection_id, "content": "One more"}, headers=as_user("coach")
    )

    assert blocked.status_code == 429
    assert "10 client messages" in blocked.json()["error"]["message"]

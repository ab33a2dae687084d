import pytest

from projectbrain.agent_core.orchestrator import AgentOrchestrator
from projectbrain.server.core.config import settings
from projectbrain.server.main import app
from projectbrain.server.services.deps import get_agent_service

API = "/api/v1"
AGENT = f"{API}/agent"


@pytest.fixture
async def alice(register, client, as_user):
    user = await register("alice", city="Leeds", country="UK")
    await client.put(f"{API}/users/me", json={"preferred_pronoun": "she/her"}, headers=as_user("alice"))
    return user


@pytest.mark.asyncio
async def test_interaction_creates_goals_and_counts_query(client, alice, as_user, openai_create, make_completion):
    openai_create.side_effect = [
        make_completion(None, [("create_daily_goals", {"goals": ["Stretch"]})]),
        make_completion("Added a stretch for today."),
    ]

    response = await client.post(
        f"{AGENT}/interact", json={"content": "  Plan my day  ", "conversation_id": "c1"}, headers=as_user("alice")
    )

    body = response.json()
    assert body["status"] == "completed"
    assert body["message"] == "Added a stretch for today."
    assert body["executed_tools"][0]["tool_name"] == "create_daily_goals"
    messages = openai_create.await_args_list[0].kwargs["messages"]
    prompt = [m for m in messages if m["role"] == "user"][-1]["content"]
    assert prompt.endswith("User Query:\nPlan my day")
    assert "Preferred pronoun: she/her" in prompt
    assert "Location: Leeds, UK" in prompt

    goals = await client.get(f"{API}/goals", headers=as_user("alice"))
    assert goals.json()[0]["message"] == "Stretch"
    usage = (await client.get(f"{API}/subscriptions/usage", headers=as_user("alice"))).json()
    assert usage["daily_ai_queries"] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content, status, code",
    [("   ", 400, "VALIDATION_ERROR"), ("x" * 2001, 413, "MESSAGE_TOO_LONG")],
)
async def test_message_is_validated(client, alice, as_user, openai_create, content, status, code):
    response = await client.post(f"{AGENT}/interact", json={"content": content}, headers=as_user("alice"))

    assert response.status_code == status
    assert response.json()["error"]["code"] == code
    openai_create.assert_not_awaited()


@pytest.mark.asyncio
async def test_disabled_feature(client, alice, as_user, monkeypatch):
    monkeypatch.setattr(settings, "agent_feature_enabled", False)

    response = await client.post(f"{AGENT}/interact", json={"content": "Hi"}, headers=as_user("alice"))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "AGENT_DISABLED"


@pytest.mark.asyncio
async def test_failed_interaction_does_not_use_quota(client, alice, as_user, openai_create):
    openai_create.side_effect = RuntimeError("LLM down")

    response = await client.post(f"{AGENT}/interact", json={"content": "Hi"}, headers=as_user("alice"))

    assert response.status_code == 200
    assert response.json()["status"] == "failed"
    usage = (await client.get(f"{API}/subscriptions/usage", headers=as_user("alice"))).json()
    assert usage["daily_ai_queries"] == 0


class TestWithoutProviderKey:
    @pytest.fixture(autouse=True)
    def unconfigured(self, client, monkeypatch):
        # Use the real wiring, which reads OPENAI_API_KEY from settings
        app.dependency_overrides.pop(get_agent_service, None)
        monkeypatch.setattr(settings, "openai_api_key", None)

    @pytest.mark.asyncio
    async def test_tools_are_listed(self, client, alice, as_user):
        response = await client.get(f"{AGENT}/tools", headers=as_user("alice"))

        assert response.status_code == 200
        assert len(response.json()) == 3

    @pytest.mark.asyncio
    async def test_disabled_feature_is_still_forbidden(self, client, alice, as_user, monkeypatch):
        monkeypatch.setattr(settings, "agent_feature_enabled", False)

        response = await client.post(f"{AGENT}/interact", json={"content": "Hi"}, headers=as_user("alice"))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "AGENT_DISABLED"

    @pytest.mark.asyncio
    async def test_interaction_is_unavailable(self, client, alice, as_user):
        response = await client.post(f"{AGENT}/interact", json={"content": "Hi"}, headers=as_user("alice"))

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "AGENT_NOT_CONFIGURED"
        usage = (await client.get(f"{API}/subscriptions/usage", headers=as_user("alice"))).json()
        assert usage["daily_ai_queries"] == 0


@pytest.mark.asyncio
async def test_daily_query_limit(client, alice, as_user, openai_create, make_completion):
    openai_create.side_effect = lambda **kwargs: make_completion("ok")
    for _ in range(50):
        await client.post(f"{AGENT}/interact", json={"content": "Hi"}, headers=as_user("alice"))

    blocked = await client.post(f"{AGENT}/interact", json={"content": "Hi"}, headers=as_user("alice"))

    assert blocked.status_code == 429
    assert "daily limit of 50 AI queries" in blocked.json()["error"]["message"]
    assert openai_create.await_count == 50


@pytest.mark.asyncio
async def test_tools_listing(client, alice, as_user):
    tools = (await client.get(f"{AGENT}/tools", headers=as_user("alice"))).json()

    assert {"create_daily_goals", "complete_goal"} <= {t["name"] for t in tools}
    assert all(t["parameters"]["type"] == "object" for t in tools)


class TestWorkflowsApi:
    @pytest.fixture
    async def paused(self, make_user, repos):
        await make_user("alice")
        await make_user("bob")
        orchestrator = AgentOrchestrator(repos)
        state = await orchestrator.create_workflow("alice", "agent_interaction")
        await orchestrator.pause_workflow(state.id, "alice")
        return state.id

    @pytest.mark.asyncio
    async def test_resume_and_cancel(self, client, paused, as_user):
        listed = await client.get(f"{AGENT}/workflows", headers=as_user("alice"))
        assert [(w["id"], w["status"]) for w in listed.json()] == [(paused, "paused")]

        resumed = await client.post(f"{AGENT}/workflows/{paused}/resume", headers=as_user("alice"))
        assert resumed.json()["status"] == "active"
        again = await client.post(f"{AGENT}/workflows/{paused}/resume", headers=as_user("alice"))
        assert again.json()["error"]["code"] == "WORKFLOW_NOT_PAUSED"

        cancelled = await client.post(f"{AGENT}/workflows/{paused}/cancel", headers=as_user("alice"))
        assert cancelled.json()["status"] == "failed"
        assert cancelled.json()["error_message"] == "Cancelled by user"
        assert (await client.get(f"{AGENT}/workflows", headers=as_user("alice"))).json() == []

    @pytest.mark.asyncio
    async def test_other_users_workflows_are_hidden(self, client, paused, as_user):
        resume = await client.post(f"{AGENT}/workflows/{paused}/resume", headers=as_user("bob"))
        cancel = await client.post(f"{AGENT}/workflows/{paused}/cancel", headers=as_user("bob"))

        assert resume.status_code == 404
        assert cancel.json()["error"]["code"] == "WORKFLOW_NOT_FOUND"

import pytest

from projectbrain.agent_core.action_tracking import AgentActionTrackingService
from projectbrain.agent_core.orchestrator import AgentOrchestrator
from projectbrain.core.models.io.agent import ToolExecutionRecord


@pytest.fixture
async def orchestrator(repos, make_user):
    await make_user("alice")
    await make_user("bob")
    return AgentOrchestrator(repos)


@pytest.mark.asyncio
async def test_create_and_persist_state(orchestrator):
    state = await orchestrator.create_workflow("alice", "agent_interaction", "conv-1", {"topic": "sleep"}, 3)

    state.current_step = 2
    state.current_state["mood"] = "good"
    state.tool_execution_history.append(
        ToolExecutionRecord(tool_name="get_todays_goals", parameters={}, result={"goals": []}, success=True)
    )
    await orchestrator.update_workflow_state(state)
    loaded = await orchestrator.load_workflow(state.id, "alice")

    assert loaded.status == "active"
    assert loaded.conversation_id == "conv-1"
    assert loaded.current_state == {"topic": "sleep", "mood": "good"}
    assert loaded.current_step == 2
    assert loaded.total_steps == 3
    assert [r.tool_name for r in loaded.tool_execution_history] == ["get_todays_goals"]


@pytest.mark.asyncio
async def test_workflows_are_scoped_to_owner(orchestrator):
    state = await orchestrator.create_workflow("alice", "agent_interaction")

    assert await orchestrator.load_workflow(state.id, "bob") is None
    assert await orchestrator.complete_workflow(state.id, "bob") is None


@pytest.mark.asyncio
async def test_corrupt_json_loads_as_empty(orchestrator, repos):
    state = await orchestrator.create_workflow("alice", "agent_interaction")
    row = await repos.agent_workflows.get_by_id_for_user(state.id, "alice")
    row.current_state = "{broken"
    row.tool_execution_history = '[{"no_tool_name": true}]'
    await repos.agent_workflows.update(row)

    loaded = await orchestrator.load_workflow(state.id, "alice")

    assert loaded.current_state == {}
    assert loaded.tool_execution_history == []


@pytest.mark.asyncio
async def test_pause_resume_and_finish(orchestrator):
    state = await orchestrator.create_workflow("alice", "agent_interaction")

    assert await orchestrator.resume_workflow(state.id, "alice") is None
    paused = await orchestrator.pause_workflow(state.id, "alice")
    assert paused.status == "paused"
    assert [w.id for w in await orchestrator.get_active_workflows("alice")] == [state.id]

    resumed = await orchestrator.resume_workflow(state.id, "alice")
    assert resumed.status == "active"

    failed = await orchestrator.fail_workflow(state.id, "alice", "model timeout")
    assert failed.status == "failed"
    assert failed.error_message == "model timeout"
    assert failed.completed_at is not None
    assert await orchestrator.get_active_workflows("alice") == []


@pytest.mark.asyncio
async def test_action_tracking(repos, make_user):
    await make_user("alice")
    actions = AgentActionTrackingService(repos)

    await actions.record_action("alice", "create_daily_goals", {"goals": ["a"]}, {"success": True}, True)
    await actions.record_action("alice", "complete_goal", {"index": 5}, {"success": False}, False, "bad index")
    await actions.record_action("alice", "complete_goal", {"index": 0}, {"success": True}, True, workflow_id="wf-1")

    recent = await actions.get_recent_actions("alice", 2)
    assert [a.tool_name for a in recent] == ["complete_goal", "complete_goal"]
    assert await actions.count_by_tool("alice") == {"create_daily_goals": 1, "complete_goal": 2}
    assert len(await actions.get_actions_by_tool_name("alice", "complete_goal")) == 2
    assert [a.workflow_id for a in await actions.get_actions_by_workflow("wf-1")] == ["wf-1"]
    assert len(await actions.get_actions_by_user("alice", skip=1, take=5)) == 2

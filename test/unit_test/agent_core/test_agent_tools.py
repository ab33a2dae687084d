import pytest
from pydantic import ValidationError

from projectbrain.agent_core.tools import AgentTools
from projectbrain.services.goals import GoalService


@pytest.fixture
def tools(repos):
    return AgentTools(GoalService(repos))


def test_openai_tool_definitions(tools):
    definitions = {t["function"]["name"]: t["function"] for t in tools.get_openai_tools()}

    assert set(definitions) == {"create_daily_goals", "get_todays_goals", "complete_goal"}
    assert definitions["create_daily_goals"]["parameters"]["required"] == ["goals"]
    assert definitions["get_todays_goals"]["parameters"]["properties"] == {}
    assert "title" not in definitions["complete_goal"]["parameters"]


@pytest.mark.asyncio
async def test_create_then_complete_goal(tools, make_user):
    await make_user("alice")

    created = await tools.execute("alice", "create_daily_goals", {"goals": ["Walk", "Read"]})
    completed = await tools.execute("alice", "complete_goal", {"index": 0})
    current = await tools.execute("alice", "get_todays_goals", {})

    assert created["message"] == "Successfully created 2 goal(s) for today"
    assert [g["message"] for g in created["goals"]] == ["Walk", "Read", ""]
    assert completed["message"] == "Goal at index 0 marked as completed"
    assert [g["completed"] for g in current["goals"]] == [True, False, False]


@pytest.mark.asyncio
async def test_arguments_are_validated(tools):
    with pytest.raises(ValidationError):
        await tools.execute("alice", "create_daily_goals", {"goals": ["a", "b", "c", "d"]})
    with pytest.raises(ValidationError):
        await tools.execute("alice", "complete_goal", {"index": 3})


@pytest.mark.asyncio
async def test_unknown_tool(tools):
    with pytest.raises(ValueError, match="Unknown tool"):
        await tools.execute("alice", "delete_everything", {})

"""
Tools the agent can call on the user's behalf.

Each tool has a pydantic input model; its JSON schema is published to the
model as an OpenAI function definition.
"""

from typing import Any, Awaitable, Callable, Dict, List, Type

from pydantic import BaseModel, ConfigDict, Field

from projectbrain.core.models.io.goals import GoalRead
from projectbrain.services.goals import GoalService


class CreateDailyGoalsInput(BaseModel):
    goals: List[str] = Field(
        ..., min_length=1, max_length=3, description="Array of 1-3 goal strings to create for today"
    )


class GetTodaysGoalsInput(BaseModel):
    pass


class CompleteGoalInput(BaseModel):
    index: int = Field(..., ge=0, le=2, description="Goal index (0, 1, or 2)")
    completed: bool = Field(default=True, description="True to mark completed, false to mark incomplete")


class ToolDefinition(BaseModel):
    """A callable tool with its input schema."""

    name: str
    description: str
    input_schema: Type[BaseModel]
    handler: Callable[[str, BaseModel], Awaitable[Dict[str, Any]]]

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def parameters(self) -> Dict[str, Any]:
        schema = self.input_schema.model_json_schema()
        schema.pop("title", None)
        schema.setdefault("properties", {})
        return schema

    def to_openai(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {"name": self.name, "description": self.description, "parameters": self.parameters},
        }


def _goals_payload(goals) -> List[Dict[str, Any]]:
    return [GoalRead.model_validate(g).model_dump(mode="json") for g in goals]


class AgentTools:
    """Goal tools bound to a ``GoalService``."""

    def __init__(self, goals: GoalService) -> None:
        self.goals = goals
        self._tools: Dict[str, ToolDefinition] = {
            tool.name: tool
            for tool in (
                ToolDefinition(
                    name="create_daily_goals",
                    description=(
                        "Create or update today's daily goals. You can create 1-3 goals. "
                        "This will replace any existing goals for today."
                    ),
                    input_schema=CreateDailyGoalsInput,
                    handler=self._create_daily_goals,
                ),
                ToolDefinition(
                    name="get_todays_goals",
                    description="Retrieve today's daily goals for the user",
                    input_schema=GetTodaysGoalsInput,
                    handler=self._get_todays_goals,
                ),
                ToolDefinition(
                    name="complete_goal",
                    description="Mark a goal as complete or incomplete. Goals are indexed 0, 1, or 2.",
                    input_schema=CompleteGoalInput,
                    handler=self._complete_goal,
                ),
            )
        }

    @property
    def definitions(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    def get_openai_tools(self) -> List[Dict[str, Any]]:
        return [tool.to_openai() for tool in self._tools.values()]

    async def execute(self, user_id: str, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Validate arguments and run a tool.

        Raises:
            ValueError: unknown tool name
            pydantic.ValidationError: arguments do not match the tool schema
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ValueError(f"Unknown tool: {name}")
        return await tool.handler(user_id, tool.input_schema.model_validate(arguments))

    async def _create_daily_goals(self, user_id: str, args: CreateDailyGoalsInput) -> Dict[str, Any]:
        saved = await self.goals.create_or_update_goals(user_id, args.goals)
        return {
            "success": True,
            "message": f"Successfully created {len(args.goals)} goal(s) for today",
            "goals": _goals_payload(saved),
        }

    async def _get_todays_goals(self, user_id: str, args: GetTodaysGoalsInput) -> Dict[str, Any]:
        goals = await self.goals.get_todays_goals(user_id)
        return {"success": True, "goals": _goals_payload(goals)}

    async def _complete_goal(self, user_id: str, args: CompleteGoalInput) -> Dict[str, Any]:
        goals = await self.goals.complete_goal(user_id, args.index, args.completed)
        state = "completed" if args.completed else "incomplete"
        return {
            "success": True,
            "message": f"Goal at index {args.index} marked as {state}",
            "goals": _goals_payload(goals),
        }

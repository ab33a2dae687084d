"""Audit log of tool actions the agent executed."""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from projectbrain.core.database.entities.agent import AgentAction
from projectbrain.core.database.repositories import SqlRepoBundle
from projectbrain.core.logging_config import get_logger

logger = get_logger(__name__)


class AgentActionTrackingService:
    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def record_action(
        self,
        user_id: str,
        tool_name: str,
        parameters: Dict[str, Any],
        result: Any,
        success: bool,
        error_message: Optional[str] = None,
        conversation_id: Optional[str] = None,
        workflow_id: Optional[str] = None,
    ) -> AgentAction:
        action = AgentAction(
            user_id=user_id,
            conversation_id=conversation_id,
            workflow_id=workflow_id,
            tool_name=tool_name,
            tool_parameters=json.dumps(parameters, default=str),
            tool_result=json.dumps(result, default=str),
            success=success,
            error_message=error_message,
            executed_at=datetime.utcnow(),
        )
        saved = await self.repos.agent_actions.create(action)
        logger.debug(f"Recorded agent action {tool_name} for user {user_id} (success={success})")
        return saved

    async def get_recent_actions(self, user_id: str, count: int = 10) -> List[AgentAction]:
        return await self.repos.agent_actions.get_recent(user_id, count)

    async def get_actions_by_user(self, user_id: str, skip: int = 0, take: int = 50) -> List[AgentAction]:
        return await self.repos.agent_actions.get_by_user(user_id, skip, take)

    async def get_actions_by_tool_name(self, user_id: str, tool_name: str) -> List[AgentAction]:
        return await self.repos.agent_actions.get_by_tool_name(user_id, tool_name)

    async def count_by_tool(self, user_id: str) -> Dict[str, int]:
        return await self.repos.agent_actions.count_by_tool(user_id)

    async def get_actions_by_workflow(self, workflow_id: str) -> List[AgentAction]:
        return await self.repos.agent_actions.get_by_workflow(workflow_id)

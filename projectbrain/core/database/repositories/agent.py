"""
Agent repository implementations.

Data access for agent workflows and the action audit log.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.agent import AgentAction, AgentWorkflow, WorkflowStatus
from .base import AsyncSqlRepository


class AgentWorkflowRepository(AsyncSqlRepository[AgentWorkflow]):
    """Repository for agent workflows."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AgentWorkflow)

    async def get_by_id_for_user(self, workflow_id: str, user_id: str) -> Optional[AgentWorkflow]:
        stmt = select(AgentWorkflow).where((AgentWorkflow.id == workflow_id) & (AgentWorkflow.user_id == user_id))
        return await self._first(stmt)

    async def get_active_workflows(self, user_id: str) -> List[AgentWorkflow]:
        """Active or paused workflows for the user, most recently updated first."""
        stmt = (
            select(AgentWorkflow)
            .where(AgentWorkflow.user_id == user_id)
            .where(
                AgentWorkflow.status.in_([WorkflowStatus.ACTIVE.value, WorkflowStatus.PAUSED.value])  # type: ignore[attr-defined]
            )
            .order_by(AgentWorkflow.updated_at.desc())  # type: ignore[attr-defined]
        )
        return await self._all(stmt)

    async def get_by_status(self, user_id: str, status: str) -> List[AgentWorkflow]:
        stmt = (
            select(AgentWorkflow)
            .where((AgentWorkflow.user_id == user_id) & (AgentWorkflow.status == status))
            .order_by(AgentWorkflow.updated_at.desc())  # type: ignore[attr-defined]
        )
        return await self._all(stmt)


class AgentActionRepository(AsyncSqlRepository[AgentAction]):
    """Repository for executed agent actions."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AgentAction)

    def default_order(self):
        return AgentAction.executed_at.desc()  # type: ignore[attr-defined]

    async def get_recent(self, user_id: str, count: int = 10) -> List[AgentAction]:
        stmt = (
            select(AgentAction)
            .where(AgentAction.user_id == user_id)
            .order_by(AgentAction.executed_at.desc(), AgentAction.id.desc())  # type: ignore[attr-defined]
            .limit(count)
        )
        return await self._all(stmt)

    async def get_by_user(self, user_id: str, skip: int = 0, take: int = 50) -> List[AgentAction]:
        stmt = (
            select(AgentAction)
            .where(AgentAction.user_id == user_id)
            .order_by(AgentAction.executed_at.desc(), AgentAction.id.desc())  # type: ignore[attr-defined]
            .offset(skip)
            .limit(take)
        )
        return await self._all(stmt)

    async def get_by_tool_name(self, user_id: str, tool_name: str) -> List[AgentAction]:
        stmt = (
            select(AgentAction)
            .where((AgentAction.user_id == user_id) & (AgentAction.tool_name == tool_name))
            .order_by(AgentAction.executed_at.desc())  # type: ignore[attr-defined]
        )
        return await self._all(stmt)

    async def get_by_workflow(self, workflow_id: str) -> List[AgentAction]:
        stmt = (
            select(AgentAction)
            .where(AgentAction.workflow_id == workflow_id)
            .order_by(AgentAction.executed_at, AgentAction.id)
        )
        return await self._all(stmt)

    async def count_by_tool(self, user_id: str) -> Dict[str, int]:
        stmt = (
            select(AgentAction.tool_name, func.count())
            .where(AgentAction.user_id == user_id)
            .group_by(AgentAction.tool_name)
        )
        result = await self.session.execute(stmt)
        return {name: count for name, count in result.all()}

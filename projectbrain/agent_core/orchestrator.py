"""
Agent workflow orchestration.

Workflows persist their state and tool history as JSON text on the
``agent_workflows`` row. The orchestrator decodes them into ``WorkflowState``
and manages status transitions:

    active -> paused -> active (resume)
    active | paused -> completed | failed
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from projectbrain.core.database.entities.agent import AgentWorkflow, WorkflowStatus
from projectbrain.core.database.repositories import SqlRepoBundle
from projectbrain.core.logging_config import get_logger
from projectbrain.core.models.io.agent import ToolExecutionRecord, WorkflowState

logger = get_logger(__name__)


def _decode(raw: Optional[str], default: Any, workflow_id: str, field_name: str) -> Any:
    if not raw:
        return default
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Workflow {workflow_id} has corrupt {field_name}, using an empty value")
        return default
    return value if isinstance(value, type(default)) else default


def to_state(workflow: AgentWorkflow) -> WorkflowState:
    history: List[ToolExecutionRecord] = []
    for entry in _decode(workflow.tool_execution_history, [], workflow.id, "tool_execution_history"):
        try:
            history.append(ToolExecutionRecord.model_validate(entry))
        except ValidationError:
            logger.warning(f"Workflow {workflow.id} has an unreadable tool history entry, skipping it")
    return WorkflowState(
        id=workflow.id,
        user_id=workflow.user_id,
        conversation_id=workflow.conversation_id,
        workflow_type=workflow.workflow_type,
        status=workflow.status,
        current_state=_decode(workflow.current_state, {}, workflow.id, "current_state"),
        tool_execution_history=history,
        current_step=workflow.current_step,
        total_steps=workflow.total_steps,
        created_at=workflow.created_at,
        updated_at=workflow.updated_at,
        completed_at=workflow.completed_at,
        error_message=workflow.error_message,
    )


class AgentOrchestrator:
    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def create_workflow(
        self,
        user_id: str,
        workflow_type: str,
        conversation_id: Optional[str] = None,
        initial_state: Optional[Dict[str, Any]] = None,
        total_steps: Optional[int] = None,
    ) -> WorkflowState:
        workflow = AgentWorkflow(
            user_id=user_id,
            conversation_id=conversation_id,
            workflow_type=workflow_type,
            status=WorkflowStatus.ACTIVE.value,
            current_state=json.dumps(initial_state or {}, default=str),
            total_steps=total_steps,
        )
        saved = await self.repos.agent_workflows.create(workflow)
        logger.info(f"Created {workflow_type} workflow {saved.id} for user {user_id}")
        return to_state(saved)

    async def load_workflow(self, workflow_id: str, user_id: str) -> Optional[WorkflowState]:
        workflow = await self.repos.agent_workflows.get_by_id_for_user(workflow_id, user_id)
        return to_state(workflow) if workflow else None

    async def update_workflow_state(self, state: WorkflowState) -> WorkflowState:
        """Persist the state, history and step counters of ``state``."""
        workflow = await self.repos.agent_workflows.get_by_id_for_user(state.id, state.user_id)
        if workflow is None:
            raise ValueError(f"Workflow {state.id} not found")
        workflow.current_state = json.dumps(state.current_state, default=str)
        workflow.tool_execution_history = json.dumps(
            [record.model_dump(mode="json") for record in state.tool_execution_history]
        )
        workflow.current_step = state.current_step
        workflow.total_steps = state.total_steps
        workflow.updated_at = datetime.utcnow()
        return to_state(await self.repos.agent_workflows.update(workflow))

    async def _set_status(
        self, workflow_id: str, user_id: str, status: WorkflowStatus, error_message: Optional[str] = None
    ) -> Optional[WorkflowState]:
        workflow = await self.repos.agent_workflows.get_by_id_for_user(workflow_id, user_id)
        if workflow is None:
            return None
        now = datetime.utcnow()
        workflow.status = status.value
        workflow.updated_at = now
        if status in (WorkflowStatus.COMPLETED, WorkflowStatus.FAILED):
            workflow.completed_at = now
        if error_message is not None:
            workflow.error_message = error_message
        return to_state(await self.repos.agent_workflows.update(workflow))

    async def pause_workflow(self, workflow_id: str, user_id: str) -> Optional[WorkflowState]:
        return await self._set_status(workflow_id, user_id, WorkflowStatus.PAUSED)

    async def resume_workflow(self, workflow_id: str, user_id: str) -> Optional[WorkflowState]:
        """Reactivate a paused workflow. None when missing or not paused."""
        workflow = await self.repos.agent_workflows.get_by_id_for_user(workflow_id, user_id)
        if workflow is None or workflow.status != WorkflowStatus.PAUSED.value:
            return None
        return await self._set_status(workflow_id, user_id, WorkflowStatus.ACTIVE)

    async def complete_workflow(self, workflow_id: str, user_id: str) -> Optional[WorkflowState]:
        return await self._set_status(workflow_id, user_id, WorkflowStatus.COMPLETED)

    async def fail_workflow(self, workflow_id: str, user_id: str, error_message: str) -> Optional[WorkflowState]:
        logger.warning(f"Workflow {workflow_id} failed: {error_message}")
        return await self._set_status(workflow_id, user_id, WorkflowStatus.FAILED, error_message)

    async def get_active_workflows(self, user_id: str) -> List[WorkflowState]:
        return [to_state(w) for w in await self.repos.agent_workflows.get_active_workflows(user_id)]

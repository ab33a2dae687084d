"""
API endpoints for the goal-setting agent.

The agent answers a message with the LLM, calling goal tools on the user's
behalf, and keeps a resumable workflow per interaction.
"""

from typing import List, Optional

from fastapi import APIRouter

from projectbrain.core.database.entities.agent import WorkflowStatus
from projectbrain.core.database.entities.subscriptions import UserType
from projectbrain.core.database.entities.users import User
from projectbrain.core.errors import (
    AppException,
    ForbiddenException,
    LimitExceededException,
    NotFoundException,
    ValidationException,
)
from projectbrain.core.logging_config import get_logger
from projectbrain.core.models.io.agent import (
    MAX_AGENT_MESSAGE_LENGTH,
    AgentRequest,
    AgentResponse,
    ToolDefinitionRead,
    WorkflowState,
)
from projectbrain.server.services.deps import (
    AgentOrchestratorDep,
    AgentServiceDep,
    CurrentUserDep,
    FeatureFlagServiceDep,
    FeatureGateDep,
    UsageServiceDep,
)

logger = get_logger(__name__)

router = APIRouter(tags=["agent"])

AI_QUERIES_FEATURE = "ai_queries"


def build_user_information(user: User) -> Optional[str]:
    """Profile facts the agent may use to personalise replies."""
    facts = [
        ("Preferred pronoun", user.preferred_pronoun),
        ("Neurodivergent details", user.neurodivergent_details),
        ("Experience", user.experience),
        ("Location", ", ".join(p for p in (user.city, user.state_province, user.country) if p)),
    ]
    lines = [f"{label}: {value}" for label, value in facts if value]
    return "\n".join(lines) or None


@router.post(
    "/interact",
    response_model=AgentResponse,
    summary="Interact with Agent",
    description="Send a message to the agent. The agent may create or complete today's goals.",
    response_description="The agent's reply and the tools it executed.",
    responses={
        400: {"description": "Empty message"},
        403: {"description": "Agent feature disabled"},
        413: {"description": "Message too long"},
        429: {"description": "AI query limit reached"},
        503: {"description": "AI provider not configured"},
    },
)
async def interact(
    payload: AgentRequest,
    user: CurrentUserDep,
    agent: AgentServiceDep,
    flags: FeatureFlagServiceDep,
    feature_gate: FeatureGateDep,
    usage: UsageServiceDep,
) -> AgentResponse:
    """
    Talk to the agent.

    - **content**: The message, up to 2000 characters.
    - **workflow_id**: Continue an existing workflow instead of starting a new one.
    - **conversation_id**: Optional client conversation id recorded with actions.
    """
    if not flags.is_feature_enabled("agent"):
        raise ForbiddenException("The agent feature is disabled", code="AGENT_DISABLED")
    if not agent.llm.is_configured:
        raise AppException("AGENT_NOT_CONFIGURED", "The AI provider is not configured", status_code=503)
    content = payload.content.strip()
    if not content:
        raise ValidationException("Message content is required", {"content": ["required"]})
    if len(content) > MAX_AGENT_MESSAGE_LENGTH:
        raise AppException(
            "MESSAGE_TOO_LONG",
            f"Message must be at most {MAX_AGENT_MESSAGE_LENGTH} characters",
            status_code=413,
        )

    allowed, reason = await feature_gate.check_feature_access(user.id, UserType.USER.value, AI_QUERIES_FEATURE)
    if not allowed:
        raise LimitExceededException(reason or "AI query limit reached")

    response = await agent.process_agent_interaction(
        user_id=user.id,
        message=content,
        conversation_id=payload.conversation_id,
        workflow_id=payload.workflow_id,
        user_information=build_user_information(user),
        user_name=user.full_name or None,
    )
    # Failed interactions do not use up quota
    if response.status == WorkflowStatus.COMPLETED.value:
        await usage.track_ai_query(user.id)
    return response


@router.get(
    "/tools",
    response_model=List[ToolDefinitionRead],
    summary="List Agent Tools",
    description="The tools the agent can call, with their JSON schemas.",
)
async def list_tools(user: CurrentUserDep, agent: AgentServiceDep) -> List[ToolDefinitionRead]:
    return [
        ToolDefinitionRead(name=tool.name, description=tool.description, parameters=tool.parameters)
        for tool in agent.tools.definitions
    ]


@router.get(
    "/workflows",
    response_model=List[WorkflowState],
    summary="List Active Workflows",
    description="The caller's active and paused agent workflows.",
)
async def list_workflows(user: CurrentUserDep, orchestrator: AgentOrchestratorDep) -> List[WorkflowState]:
    return await orchestrator.get_active_workflows(user.id)


@router.post(
    "/workflows/{workflow_id}/resume",
    response_model=WorkflowState,
    summary="Resume Workflow",
    description="Resume a paused workflow.",
    responses={400: {"description": "Workflow is not paused"}, 404: {"description": "Workflow not found"}},
)
async def resume_workflow(workflow_id: str, user: CurrentUserDep, orchestrator: AgentOrchestratorDep) -> WorkflowState:
    if await orchestrator.load_workflow(workflow_id, user.id) is None:
        raise NotFoundException("Workflow not found", code="WORKFLOW_NOT_FOUND")
    state = await orchestrator.resume_workflow(workflow_id, user.id)
    if state is None:
        raise AppException("WORKFLOW_NOT_PAUSED", "Only paused workflows can be resumed")
    return state


@router.post(
    "/workflows/{workflow_id}/cancel",
    response_model=WorkflowState,
    summary="Cancel Workflow",
    description="Stop a workflow. It is recorded as failed with the reason 'Cancelled by user'.",
    responses={404: {"description": "Workflow not found"}},
)
async def cancel_workflow(workflow_id: str, user: CurrentUserDep, orchestrator: AgentOrchestratorDep) -> WorkflowState:
    if await orchestrator.load_workflow(workflow_id, user.id) is None:
        raise NotFoundException("Workflow not found", code="WORKFLOW_NOT_FOUND")
    state = await orchestrator.fail_workflow(workflow_id, user.id, "Cancelled by user")
    if state is None:
        raise NotFoundException("Workflow not found", code="WORKFLOW_NOT_FOUND")
    return state

"""
Agent service.

Runs one user interaction through the LLM tool loop:

1. Load (or create) the workflow for the interaction.
2. Ask the model, executing every tool call it makes and feeding the results
   back, until it answers without tool calls or the iteration cap is hit.
3. Record each tool execution in the action log and the workflow history.
4. Complete the workflow, or fail it when anything outside a tool raises.
"""

import json
from typing import Any, Dict, List, Optional

from projectbrain.core.database.entities.agent import WorkflowStatus
from projectbrain.core.database.repositories import SqlRepoBundle
from projectbrain.core.logging_config import get_logger
from projectbrain.core.models.io.agent import AgentResponse, ExecutedTool, ToolExecutionRecord, WorkflowState
from projectbrain.core.monitoring import log_agent_interaction, log_error
from projectbrain.services.goals import GoalService

from .action_tracking import AgentActionTrackingService
from .llm_client import AgentLLMClient
from .orchestrator import AgentOrchestrator
from .tools import AgentTools

logger = get_logger(__name__)

WORKFLOW_TYPE = "agent_interaction"
MAX_ITERATIONS = 10
RECENT_ACTION_COUNT = 5


class AgentService:
    def __init__(
        self,
        repos: SqlRepoBundle,
        llm: Optional[AgentLLMClient] = None,
        tools: Optional[AgentTools] = None,
    ) -> None:
        self.repos = repos
        self.llm = llm or AgentLLMClient()
        self.tools = tools or AgentTools(GoalService(repos))
        self.orchestrator = AgentOrchestrator(repos)
        self.actions = AgentActionTrackingService(repos)

    async def _with_recent_actions(self, user_id: str, user_information: Optional[str]) -> Optional[str]:
        recent = await self.actions.get_recent_actions(user_id, RECENT_ACTION_COUNT)
        if not recent:
            return user_information
        summary = "Recent agent actions: " + ", ".join(
            f"{a.tool_name} at {a.executed_at:%H:%M}" for a in recent
        )
        return f"{user_information}\n\n{summary}" if user_information else summary

    async def _load_or_create(
        self, user_id: str, workflow_id: Optional[str], conversation_id: Optional[str]
    ) -> WorkflowState:
        if workflow_id:
            state = await self.orchestrator.load_workflow(workflow_id, user_id)
            if state is not None:
                return state
            logger.info(f"Workflow {workflow_id} not found for user {user_id}, starting a new one")
        return await self.orchestrator.create_workflow(user_id, WORKFLOW_TYPE, conversation_id)

    async def process_agent_interaction(
        self,
        user_id: str,
        message: str,
        conversation_id: Optional[str] = None,
        workflow_id: Optional[str] = None,
        user_information: Optional[str] = None,
        user_name: Optional[str] = None,
        history: Optional[List[Dict[str, str]]] = None,
    ) -> AgentResponse:
        """Handle one agent message for the user.

        Returns:
            AgentResponse with status ``completed``, or ``failed`` and an error message
        """
        state: Optional[WorkflowState] = None
        executed: List[ExecutedTool] = []
        replies: List[str] = []
        try:
            state = await self._load_or_create(user_id, workflow_id, conversation_id)
            info = await self._with_recent_actions(user_id, user_information)
            messages: List[Dict[str, Any]] = self.llm.build_messages(message, user_name, info, history)
            openai_tools = self.tools.get_openai_tools()

            for _ in range(MAX_ITERATIONS):
                reply = await self.llm.chat(messages, openai_tools)
                if reply.content:
                    replies.append(reply.content)
                if not reply.tool_calls:
                    break

                messages.append(reply.to_message())
                for call in reply.tool_calls:
                    result = await self._run_tool(state, call.name, call.arguments, conversation_id)
                    executed.append(result)
                    payload = result.result if result.success else {"success": False, "error": result.error}
                    messages.append(
                        {"role": "tool", "tool_call_id": call.id, "content": json.dumps(payload, default=str)}
                    )
                state.current_step += 1
                state = await self.orchestrator.update_workflow_state(state)
            else:
                logger.warning(f"Workflow {state.id} reached {MAX_ITERATIONS} iterations, stopping")

            await self.orchestrator.complete_workflow(state.id, user_id)
            log_agent_interaction(user_id, state.id, WorkflowStatus.COMPLETED.value, len(executed))
            return AgentResponse(
                workflow_id=state.id,
                status=WorkflowStatus.COMPLETED.value,
                message="\n\n".join(replies),
                executed_tools=executed,
            )
        except Exception as e:
            logger.error(f"Agent interaction failed for user {user_id}: {e}", exc_info=True)
            log_error(type(e).__name__, str(e), {"user_id": user_id})
            if state is not None:
                await self.orchestrator.fail_workflow(state.id, user_id, str(e))
            return AgentResponse(
                workflow_id=state.id if state else None,
                status=WorkflowStatus.FAILED.value,
                message="\n\n".join(replies),
                executed_tools=executed,
                error_message=str(e),
            )

    async def _run_tool(
        self, state: WorkflowState, name: str, arguments: Dict[str, Any], conversation_id: Optional[str]
    ) -> ExecutedTool:
        """Execute one tool call, recording it whether or not it succeeds."""
        try:
            result = await self.tools.execute(state.user_id, name, arguments)
            outcome = ExecutedTool(tool_name=name, success=True, result=result)
        except Exception as e:
            logger.warning(f"Tool {name} failed for user {state.user_id}: {e}")
            outcome = ExecutedTool(tool_name=name, success=False, error=str(e))

        await self.actions.record_action(
            user_id=state.user_id,
            tool_name=name,
            parameters=arguments,
            result=outcome.result if outcome.success else {"success": False, "error": outcome.error},
            success=outcome.success,
            error_message=outcome.error,
            conversation_id=conversation_id,
            workflow_id=state.id,
        )
        state.tool_execution_history.append(
            ToolExecutionRecord(
                tool_name=name,
                parameters=arguments,
                result=outcome.result,
                success=outcome.success,
                error_message=outcome.error,
            )
        )
        return outcome

"""
Agent I/O models for API requests and responses.

Also defines the in-memory workflow state views used by the orchestrator.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

MAX_AGENT_MESSAGE_LENGTH = 2000


class AgentRequest(BaseModel):
    conversation_id: Optional[str] = None
    workflow_id: Optional[str] = None
    content: str = ""


class ExecutedTool(BaseModel):
    tool_name: str
    success: bool
    result: Optional[Any] = None
    error: Optional[str] = None


class AgentResponse(BaseModel):
    workflow_id: Optional[str] = None
    status: str
    message: str = ""
    executed_tools: List[ExecutedTool] = Field(default_factory=list)
    error_message: Optional[str] = None


class ToolExecutionRecord(BaseModel):
    """One entry of a workflow's tool history."""

    tool_name: str
    parameters: Dict[str, Any] = Field(default_factory=dict)
    result: Optional[Any] = None
    success: bool
    error_message: Optional[str] = None
    executed_at: datetime = Field(default_factory=datetime.utcnow)


class WorkflowState(BaseModel):
    """Decoded view of an AgentWorkflow row."""

    id: str
    user_id: str
    conversation_id: Optional[str] = None
    workflow_type: str
    status: str
    current_state: Dict[str, Any] = Field(default_factory=dict)
    tool_execution_history: List[ToolExecutionRecord] = Field(default_factory=list)
    current_step: int = 0
    total_steps: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None


class ToolDefinitionRead(BaseModel):
    name: str
    description: str
    parameters: Dict[str, Any]

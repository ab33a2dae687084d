"""
Agent entity models.

This module contains the persisted agent workflow state and the audit log
of tool actions executed on a user's behalf.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field

from ..base import Base


class WorkflowStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"


class AgentWorkflow(Base, table=True):
    """Multi-step agent workflow state.

    ``current_state`` and ``tool_execution_history`` hold JSON text.

    Table: agent_workflows
    """

    __tablename__ = "agent_workflows"
    __table_args__ = ({"extend_existing": True},)

    # Primary key
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)

    user_id: str = Field(foreign_key="users.id", index=True)
    conversation_id: Optional[str] = Field(default=None, index=True)
    workflow_type: str = Field(max_length=100)
    status: str = Field(default=WorkflowStatus.ACTIVE.value, max_length=20, index=True)

    # State
    current_state: str = Field(default="{}")
    tool_execution_history: str = Field(default="[]")
    current_step: int = Field(default=0)
    total_steps: Optional[int] = Field(default=None)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = Field(default=None)
    error_message: Optional[str] = Field(default=None)

    def __repr__(self) -> str:
        return f"AgentWorkflow(id={self.id}, type={self.workflow_type}, status={self.status})"


class AgentAction(Base, table=True):
    """Record of a single tool execution.

    Table: agent_actions
    """

    __tablename__ = "agent_actions"
    __table_args__ = ({"extend_existing": True},)

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: str = Field(foreign_key="users.id", index=True)
    conversation_id: Optional[str] = Field(default=None)
    workflow_id: Optional[str] = Field(default=None, index=True)
    tool_name: str = Field(max_length=100, index=True)
    tool_parameters: str = Field(default="{}")
    tool_result: str = Field(default="{}")
    success: bool = Field(default=True)
    error_message: Optional[str] = Field(default=None)

    # Timestamps
    executed_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def __repr__(self) -> str:
        return f"AgentAction(id={self.id}, tool={self.tool_name}, success={self.success})"

"""
Connection entity models.

A connection links one user to one coach and moves through a small
request/response lifecycle.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from ..base import Base


class ConnectionStatus(str, Enum):
    """Lifecycle state of a user/coach connection."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class RequestedBy(str, Enum):
    """Which side initiated the connection request."""

    USER = "user"
    COACH = "coach"


class Connection(Base, table=True):
    """Relationship between a user and a coach.

    Table: connections
    """

    __tablename__ = "connections"
    __table_args__ = (
        UniqueConstraint("user_id", "coach_id", name="uq_connections_user_coach"),
        {"extend_existing": True},
    )

    # Primary key
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)

    # Participants
    user_id: str = Field(foreign_key="users.id", index=True)
    coach_id: str = Field(foreign_key="users.id", index=True)

    # Request state
    status: str = Field(default=ConnectionStatus.PENDING.value, max_length=20, index=True)
    requested_by: str = Field(default=RequestedBy.USER.value, max_length=20)
    request_message: Optional[str] = Field(default=None, max_length=1000)
    requested_at: datetime = Field(default_factory=datetime.utcnow)
    responded_at: Optional[datetime] = Field(default=None)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    def involves(self, participant_id: str) -> bool:
        return participant_id in (self.user_id, self.coach_id)

    def __repr__(self) -> str:
        return f"Connection(id={self.id}, user_id={self.user_id}, coach_id={self.coach_id}, status={self.status})"

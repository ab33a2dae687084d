"""
Coach message entity models.

Messages exchanged between the two participants of an accepted connection.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field

from ..base import Base


class MessageType(str, Enum):
    TEXT = "text"
    VOICE = "voice"


class MessageStatus(str, Enum):
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"


class CoachMessage(Base, table=True):
    """Single message in a user/coach conversation.

    Table: coach_messages
    """

    __tablename__ = "coach_messages"
    __table_args__ = ({"extend_existing": True},)

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    # Conversation
    connection_id: str = Field(foreign_key="connections.id", index=True)
    user_id: str = Field(index=True)
    coach_id: str = Field(index=True)
    sender_id: str = Field(index=True)

    # Content
    message_type: str = Field(default=MessageType.TEXT.value, max_length=20)
    content: str = Field(default="")
    voice_note_url: Optional[str] = Field(default=None)
    voice_note_file_name: Optional[str] = Field(default=None)

    # Delivery
    status: str = Field(default=MessageStatus.SENT.value, max_length=20)
    delivered_at: Optional[datetime] = Field(default=None)
    read_at: Optional[datetime] = Field(default=None)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    def __repr__(self) -> str:
        return f"CoachMessage(id={self.id}, connection_id={self.connection_id}, status={self.status})"

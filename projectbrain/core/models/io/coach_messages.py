"""Coach messaging I/O models for API requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CoachMessageRead(BaseModel):
    id: int
    connection_id: str
    user_id: str
    coach_id: str
    sender_id: str
    message_type: str
    content: str
    voice_note_url: Optional[str] = None
    voice_note_file_name: Optional[str] = None
    status: str
    delivered_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CoachMessageCreate(BaseModel):
    connection_id: str
    content: str = Field(min_length=1, max_length=5000)


class ConversationSummary(BaseModel):
    """Inbox row for one accepted connection."""

    connection_id: str
    other_person_id: str
    other_person_name: str
    last_message_snippet: Optional[str] = None
    last_message_sender_name: Optional[str] = None
    last_message_at: Optional[datetime] = None
    unread_count: int = 0

"""Connection I/O models for API requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ConnectionRead(BaseModel):
    id: str
    user_id: str
    coach_id: str
    status: str
    requested_by: str
    request_message: Optional[str] = None
    requested_at: datetime
    responded_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ConnectionRequest(BaseModel):
    message: Optional[str] = Field(default=None, max_length=1000)


class ConnectionStatusRead(BaseModel):
    coach_id: str
    status: Optional[str] = None
    is_connected: bool

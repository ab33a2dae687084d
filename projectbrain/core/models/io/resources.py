"""Resource (file) I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ResourceRead(BaseModel):
    id: int
    file_name: str
    size_in_bytes: int
    content_type: Optional[str] = None
    is_shared: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

"""Journal and tag I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class TagRead(BaseModel):
    id: int
    name: str
    created_at: datetime

    class Config:
        from_attributes = True


class TagCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class TagUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class JournalEntryCreate(BaseModel):
    content: str = Field(min_length=1)
    summary: Optional[str] = None
    tag_ids: List[int] = Field(default_factory=list)


class JournalEntryUpdate(BaseModel):
    content: Optional[str] = Field(default=None, min_length=1)
    summary: Optional[str] = None
    tag_ids: Optional[List[int]] = None


class JournalEntryRead(BaseModel):
    id: int
    content: str
    summary: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    tags: List[TagRead] = Field(default_factory=list)


class CountRead(BaseModel):
    count: int

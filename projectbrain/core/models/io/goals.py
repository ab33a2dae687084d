"""Daily goal I/O models."""

from __future__ import annotations

from datetime import date as date_type
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class GoalRead(BaseModel):
    id: int
    date: date_type
    index: int
    message: str
    completed: bool
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GoalsUpsert(BaseModel):
    goals: List[str] = Field(description="One to three goal messages for today")


class GoalComplete(BaseModel):
    completed: bool = True


class GoalStreak(BaseModel):
    streak: int


class HasGoals(BaseModel):
    has_ever_created_goals: bool

"""Coach rating I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class CoachRatingCreate(BaseModel):
    rating: int
    feedback: Optional[str] = Field(default=None, max_length=2000)


class CoachRatingRead(BaseModel):
    id: int
    user_id: str
    coach_id: str
    rating: int
    feedback: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CoachRatingSummary(BaseModel):
    coach_id: str
    average_rating: Optional[float] = None
    rating_count: int
    ratings: List[CoachRatingRead]

"""Coach rating entity models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from ..base import Base


class CoachRating(Base, table=True):
    """A user's 1-5 rating of a coach they are connected to.

    Table: coach_ratings
    """

    __tablename__ = "coach_ratings"
    __table_args__ = (
        UniqueConstraint("user_id", "coach_id", name="uq_coach_ratings_user_coach"),
        {"extend_existing": True},
    )

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: str = Field(foreign_key="users.id", index=True)
    coach_id: str = Field(foreign_key="users.id", index=True)
    rating: int = Field(ge=1, le=5)
    feedback: Optional[str] = Field(default=None, max_length=2000)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    def __repr__(self) -> str:
        return f"CoachRating(id={self.id}, coach_id={self.coach_id}, rating={self.rating})"

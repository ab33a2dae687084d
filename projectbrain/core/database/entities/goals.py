"""
Goal entity models.

Users keep up to three goals per day, stored as three indexed slots.
"""

from __future__ import annotations

from datetime import date as date_type
from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from ..base import Base

GOALS_PER_DAY = 3


class Goal(Base, table=True):
    """One daily goal slot.

    Table: goals
    """

    __tablename__ = "goals"
    __table_args__ = (
        UniqueConstraint("user_id", "date", "index", name="uq_goals_user_date_index"),
        {"extend_existing": True},
    )

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: str = Field(foreign_key="users.id", index=True)
    date: date_type = Field(index=True)
    index: int = Field(ge=0, le=GOALS_PER_DAY - 1)
    message: str = Field(default="", max_length=500)
    completed: bool = Field(default=False)
    completed_at: Optional[datetime] = Field(default=None)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    def __repr__(self) -> str:
        return f"Goal(id={self.id}, user_id={self.user_id}, date={self.date}, index={self.index})"

"""
Usage tracking entity models.

Per-period counters used by plan limits, and cumulative file storage usage.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Index
from sqlmodel import Field

from ..base import Base


class UsageType(str, Enum):
    AI_QUERY = "ai_query"
    COACH_MESSAGE = "coach_message"
    CLIENT_MESSAGE = "client_message"
    FILE_UPLOAD = "file_upload"
    RESEARCH_REPORT = "research_report"


class PeriodType(str, Enum):
    DAILY = "daily"
    MONTHLY = "monthly"


class UsageTracking(Base, table=True):
    """Counter for one usage type in one period.

    Table: usage_tracking
    """

    __tablename__ = "usage_tracking"
    __table_args__ = (
        Index("ix_usage_tracking_lookup", "user_id", "usage_type", "period_type", "period_start"),
        {"extend_existing": True},
    )

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: str = Field(foreign_key="users.id")
    usage_type: str = Field(max_length=50)
    period_type: str = Field(max_length=20)
    period_start: datetime = Field()
    count: int = Field(default=0)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    def __repr__(self) -> str:
        return (
            f"UsageTracking(user_id={self.user_id}, type={self.usage_type}, "
            f"period={self.period_type}, count={self.count})"
        )


class FileStorageUsage(Base, table=True):
    """Total bytes stored by a user.

    Table: file_storage_usage
    """

    __tablename__ = "file_storage_usage"
    __table_args__ = ({"extend_existing": True},)

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: str = Field(foreign_key="users.id", unique=True, index=True)
    total_bytes: int = Field(default=0)

    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    def __repr__(self) -> str:
        return f"FileStorageUsage(user_id={self.user_id}, total_bytes={self.total_bytes})"

"""Device token entity models for push notifications."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Index
from sqlmodel import Field

from ..base import Base


class DeviceToken(Base, table=True):
    """FCM registration token for one of a user's devices.

    Table: device_tokens
    """

    __tablename__ = "device_tokens"
    __table_args__ = (
        Index("ix_device_tokens_user_active", "user_id", "is_active"),
        {"extend_existing": True},
    )

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: str = Field(foreign_key="users.id")
    token: str = Field(unique=True, index=True, max_length=4096)
    platform: Optional[str] = Field(default=None, max_length=20)
    device_id: Optional[str] = Field(default=None, max_length=255)

    # Validity
    is_active: bool = Field(default=True)
    invalid_reason: Optional[str] = Field(default=None, max_length=255)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    last_used_at: Optional[datetime] = Field(default_factory=datetime.utcnow)
    last_validated_at: Optional[datetime] = Field(default=None)

    def __repr__(self) -> str:
        return f"DeviceToken(id={self.id}, user_id={self.user_id}, active={self.is_active})"

"""
User entity models.

This module contains the database entities for platform accounts and the
coach profile attached to users who offer coaching.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from sqlmodel import JSON, Field

from ..base import Base


class UserRole(str, Enum):
    """Platform roles carried on a user."""

    USER = "user"
    COACH = "coach"
    ADMIN = "admin"


class AvailabilityStatus(str, Enum):
    """Coach availability shown to clients."""

    AVAILABLE = "available"
    BUSY = "busy"
    AWAY = "away"
    OFFLINE = "offline"


class User(Base, table=True):
    """Platform account keyed by the identity provider's user id.

    Table: users
    """

    __tablename__ = "users"
    __table_args__ = ({"extend_existing": True},)

    # Primary key
    id: str = Field(primary_key=True, max_length=255)

    # Profile
    email: str = Field(index=True, unique=True, max_length=320)
    full_name: str = Field(default="", max_length=255)
    favorite_colour: Optional[str] = Field(default=None, max_length=100)
    date_of_birth: Optional[date] = Field(default=None)
    is_onboarded: bool = Field(default=False)
    preferred_pronoun: Optional[str] = Field(default=None, max_length=50)
    neurodivergent_details: Optional[str] = Field(default=None)
    address: Optional[str] = Field(default=None)
    city: Optional[str] = Field(default=None, max_length=100, index=True)
    state_province: Optional[str] = Field(default=None, max_length=100)
    country: Optional[str] = Field(default=None, max_length=100)
    experience: Optional[str] = Field(default=None)

    # Access
    roles: List[str] = Field(default_factory=lambda: [UserRole.USER.value], sa_type=JSON)

    # Activity
    last_activity_at: Optional[datetime] = Field(default=None, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    def has_role(self, role: UserRole | str) -> bool:
        value = role.value if isinstance(role, UserRole) else role
        return value in (self.roles or [])

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email}, roles={self.roles})"


class CoachProfile(Base, table=True):
    """Coaching details for a user who holds the coach role.

    Table: coach_profiles
    """

    __tablename__ = "coach_profiles"
    __table_args__ = ({"extend_existing": True},)

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    # Owner
    user_id: str = Field(foreign_key="users.id", unique=True, index=True)

    # Profile details
    qualifications: List[str] = Field(default_factory=list, sa_type=JSON)
    specialisms: List[str] = Field(default_factory=list, sa_type=JSON)
    age_groups: List[str] = Field(default_factory=list, sa_type=JSON)
    availability_status: str = Field(default=AvailabilityStatus.AVAILABLE.value, max_length=20)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    def __repr__(self) -> str:
        return f"CoachProfile(id={self.id}, user_id={self.user_id}, status={self.availability_status})"

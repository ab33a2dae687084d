"""
User and coach profile I/O models for API requests and responses.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class UserRead(BaseModel):
    """Schema for reading a user."""

    id: str
    email: str
    full_name: str
    favorite_colour: Optional[str] = None
    date_of_birth: Optional[date] = None
    is_onboarded: bool
    preferred_pronoun: Optional[str] = None
    neurodivergent_details: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state_province: Optional[str] = None
    country: Optional[str] = None
    experience: Optional[str] = None
    roles: List[str] = Field(default_factory=list)
    last_activity_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    """Schema for registering the calling identity."""

    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    full_name: str = Field(default="", max_length=255)
    favorite_colour: Optional[str] = Field(default=None, max_length=100)
    date_of_birth: Optional[date] = None
    preferred_pronoun: Optional[str] = Field(default=None, max_length=50)
    city: Optional[str] = Field(default=None, max_length=100)
    state_province: Optional[str] = Field(default=None, max_length=100)
    country: Optional[str] = Field(default=None, max_length=100)


class UserUpdate(BaseModel):
    """Schema for updating the caller's profile."""

    full_name: Optional[str] = Field(default=None, max_length=255)
    favorite_colour: Optional[str] = Field(default=None, max_length=100)
    date_of_birth: Optional[date] = None
    preferred_pronoun: Optional[str] = Field(default=None, max_length=50)
    neurodivergent_details: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = Field(default=None, max_length=100)
    state_province: Optional[str] = Field(default=None, max_length=100)
    country: Optional[str] = Field(default=None, max_length=100)
    experience: Optional[str] = None


class RolesUpdate(BaseModel):
    roles: List[str] = Field(min_length=1)


class CoachProfileUpsert(BaseModel):
    """Schema for coach onboarding and profile edits."""

    qualifications: List[str] = Field(default_factory=list)
    specialisms: List[str] = Field(default_factory=list)
    age_groups: List[str] = Field(default_factory=list)


class CoachProfileRead(BaseModel):
    id: int
    user_id: str
    qualifications: List[str]
    specialisms: List[str]
    age_groups: List[str]
    availability_status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CoachSearchResult(BaseModel):
    """Directory entry returned by coach search."""

    user_id: str
    full_name: str
    city: Optional[str] = None
    state_province: Optional[str] = None
    country: Optional[str] = None
    qualifications: List[str]
    specialisms: List[str]
    age_groups: List[str]
    availability_status: str


class AvailabilityUpdate(BaseModel):
    status: str


class AvailabilityRead(BaseModel):
    status: str

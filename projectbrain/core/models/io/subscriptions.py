"""Subscription and usage I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field


class SubscriptionRead(BaseModel):
    id: int
    user_id: str
    user_type: str
    tier: str
    status: str
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    trial_ends_at: Optional[datetime] = None
    current_period_start: datetime
    current_period_end: datetime
    canceled_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None


class CheckoutRequest(BaseModel):
    user_type: str = "user"
    tier: str
    is_annual: bool = False


class CheckoutResponse(BaseModel):
    checkout_url: str


class TrialRequest(BaseModel):
    user_type: str = "user"
    tier: str = "Pro"


class TierRead(BaseModel):
    user_type: str
    tier: str


class UsageRead(BaseModel):
    """Current usage and the tier limits it is measured against."""

    user_type: str
    tier: str
    daily_ai_queries: int
    monthly_ai_queries: int
    monthly_coach_messages: int
    monthly_client_messages: int
    monthly_research_reports: int
    file_storage_bytes: int
    limits: Dict[str, object] = Field(default_factory=dict)


class SubscriptionSettingsRead(BaseModel):
    enable_user_subscriptions: bool
    enable_coach_subscriptions: bool
    updated_by: str
    updated_at: datetime

    class Config:
        from_attributes = True


class SubscriptionSettingsUpdate(BaseModel):
    enable_user_subscriptions: bool
    enable_coach_subscriptions: bool


class ExclusionCreate(BaseModel):
    user_id: str
    user_type: str = "user"
    reason: Optional[str] = Field(default=None, max_length=1000)


class ExclusionRead(BaseModel):
    id: int
    user_id: str
    user_type: str
    excluded_by: str
    reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SubscriptionAnalytics(BaseModel):
    paid_subscribers: int
    paid_users: int
    paid_coaches: int
    by_status: Dict[str, int]
    by_tier: Dict[str, int]

"""
Subscription entity models.

This module contains the tier catalogue, per-user subscriptions mirrored from
Stripe, admin exclusions, and the global subscription switch.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import JSON, Field

from ..base import Base


class UserType(str, Enum):
    USER = "user"
    COACH = "coach"


class TierName(str, Enum):
    FREE = "Free"
    PRO = "Pro"
    ULTIMATE = "Ultimate"


class SubscriptionStatus(str, Enum):
    """Local subscription status, mapped from Stripe's."""

    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"
    EXPIRED = "expired"


ENTITLED_STATUSES = (SubscriptionStatus.ACTIVE.value, SubscriptionStatus.TRIALING.value)


class SubscriptionTier(Base, table=True):
    """Purchasable plan for a user type.

    Table: subscription_tiers
    """

    __tablename__ = "subscription_tiers"
    __table_args__ = (
        UniqueConstraint("name", "user_type", name="uq_subscription_tiers_name_type"),
        {"extend_existing": True},
    )

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    name: str = Field(max_length=50)
    user_type: str = Field(max_length=20)
    features: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    def __repr__(self) -> str:
        return f"SubscriptionTier(id={self.id}, name={self.name}, user_type={self.user_type})"


class UserSubscription(Base, table=True):
    """A user's subscription to a tier.

    Table: user_subscriptions
    """

    __tablename__ = "user_subscriptions"
    __table_args__ = ({"extend_existing": True},)

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: str = Field(foreign_key="users.id", index=True)
    user_type: str = Field(max_length=20, index=True)
    tier_id: int = Field(foreign_key="subscription_tiers.id")

    # Stripe references
    stripe_customer_id: Optional[str] = Field(default=None, index=True)
    stripe_subscription_id: Optional[str] = Field(default=None, index=True)
    stripe_price_id: Optional[str] = Field(default=None)

    # Lifecycle
    status: str = Field(default=SubscriptionStatus.INCOMPLETE.value, max_length=20, index=True)
    trial_ends_at: Optional[datetime] = Field(default=None)
    current_period_start: datetime = Field(default_factory=datetime.utcnow)
    current_period_end: datetime = Field(default_factory=datetime.utcnow)
    canceled_at: Optional[datetime] = Field(default=None)
    expired_at: Optional[datetime] = Field(default=None)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    def __repr__(self) -> str:
        return f"UserSubscription(id={self.id}, user_id={self.user_id}, status={self.status})"


class SubscriptionExclusion(Base, table=True):
    """Admin override keeping a user on the free tier.

    Table: subscription_exclusions
    """

    __tablename__ = "subscription_exclusions"
    __table_args__ = (
        UniqueConstraint("user_id", "user_type", name="uq_subscription_exclusions_user_type"),
        {"extend_existing": True},
    )

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: str = Field(foreign_key="users.id", index=True)
    user_type: str = Field(max_length=20)
    excluded_by: str = Field(max_length=255)
    reason: Optional[str] = Field(default=None, max_length=1000)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    def __repr__(self) -> str:
        return f"SubscriptionExclusion(user_id={self.user_id}, user_type={self.user_type})"


class SubscriptionSettings(Base, table=True):
    """Singleton row (id=1) switching subscriptions on per user type.

    Table: subscription_settings
    """

    __tablename__ = "subscription_settings"
    __table_args__ = ({"extend_existing": True},)

    # Primary key
    id: int = Field(default=1, primary_key=True)

    enable_user_subscriptions: bool = Field(default=True)
    enable_coach_subscriptions: bool = Field(default=True)
    updated_by: str = Field(default="system", max_length=255)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def __repr__(self) -> str:
        return (
            f"SubscriptionSettings(users={self.enable_user_subscriptions}, "
            f"coaches={self.enable_coach_subscriptions})"
        )

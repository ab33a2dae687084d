"""
Subscription repository implementations.

Data access for tiers, user subscriptions, exclusions and the global
subscription settings row.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.subscriptions import (
    SubscriptionExclusion,
    SubscriptionSettings,
    SubscriptionTier,
    UserSubscription,
)
from .base import AsyncSqlRepository


class SubscriptionTierRepository(AsyncSqlRepository[SubscriptionTier]):
    """Repository for the tier catalogue."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, SubscriptionTier)

    async def get_by_name(self, name: str, user_type: str) -> Optional[SubscriptionTier]:
        stmt = select(SubscriptionTier).where(
            (SubscriptionTier.name == name) & (SubscriptionTier.user_type == user_type)
        )
        return await self._first(stmt)


class UserSubscriptionRepository(AsyncSqlRepository[UserSubscription]):
    """Repository for user subscriptions."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UserSubscription)

    async def get_latest(self, user_id: str, user_type: str) -> Optional[UserSubscription]:
        """Most recently created subscription for the user and type."""
        stmt = (
            select(UserSubscription)
            .where((UserSubscription.user_id == user_id) & (UserSubscription.user_type == user_type))
            .order_by(UserSubscription.created_at.desc(), UserSubscription.id.desc())  # type: ignore[attr-defined]
        )
        return await self._first(stmt)

    async def get_by_stripe_subscription_id(self, stripe_subscription_id: str) -> Optional[UserSubscription]:
        stmt = select(UserSubscription).where(UserSubscription.stripe_subscription_id == stripe_subscription_id)
        return await self._first(stmt)

    async def get_by_stripe_customer_id(self, stripe_customer_id: str) -> Optional[UserSubscription]:
        stmt = (
            select(UserSubscription)
            .where(UserSubscription.stripe_customer_id == stripe_customer_id)
            .order_by(UserSubscription.created_at.desc())  # type: ignore[attr-defined]
        )
        return await self._first(stmt)

    async def count_by_status(self, user_type: Optional[str] = None) -> Dict[str, int]:
        stmt = select(UserSubscription.status, func.count()).group_by(UserSubscription.status)
        if user_type:
            stmt = stmt.where(UserSubscription.user_type == user_type)
        result = await self.session.execute(stmt)
        return {status: count for status, count in result.all()}

    async def count_by_tier(self, statuses: List[str], user_type: Optional[str] = None) -> Dict[str, int]:
        stmt = (
            select(SubscriptionTier.name, func.count())
            .select_from(UserSubscription)
            .join(SubscriptionTier, SubscriptionTier.id == UserSubscription.tier_id)  # type: ignore[arg-type]
            .where(UserSubscription.status.in_(statuses))  # type: ignore[attr-defined]
            .group_by(SubscriptionTier.name)
        )
        if user_type:
            stmt = stmt.where(UserSubscription.user_type == user_type)
        result = await self.session.execute(stmt)
        return {name: count for name, count in result.all()}

    async def count_paid(self, statuses: List[str], user_type: Optional[str] = None) -> int:
        """Count subscriptions in ``statuses`` on a non-free tier."""
        stmt = (
            select(func.count())
            .select_from(UserSubscription)
            .join(SubscriptionTier, SubscriptionTier.id == UserSubscription.tier_id)  # type: ignore[arg-type]
            .where(UserSubscription.status.in_(statuses))  # type: ignore[attr-defined]
            .where(SubscriptionTier.name != "Free")
        )
        if user_type:
            stmt = stmt.where(UserSubscription.user_type == user_type)
        return await self._scalar_count(stmt)


class SubscriptionExclusionRepository(AsyncSqlRepository[SubscriptionExclusion]):
    """Repository for subscription exclusions."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, SubscriptionExclusion)

    async def get_for(self, user_id: str, user_type: str) -> Optional[SubscriptionExclusion]:
        stmt = select(SubscriptionExclusion).where(
            (SubscriptionExclusion.user_id == user_id) & (SubscriptionExclusion.user_type == user_type)
        )
        return await self._first(stmt)


class SubscriptionSettingsRepository(AsyncSqlRepository[SubscriptionSettings]):
    """Repository for the singleton settings row."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, SubscriptionSettings)

    async def get_or_create(self) -> SubscriptionSettings:
        current = await self.get_by_id(1)
        if current is None:
            current = await self.create(SubscriptionSettings(id=1))
        return current

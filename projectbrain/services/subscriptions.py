"""
Subscription service.

Resolves a user's effective tier, mirrors Stripe subscription state into the
local database, and manages admin exclusions and the global on/off switches.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from projectbrain.core.database.entities.subscriptions import (
    ENTITLED_STATUSES,
    SubscriptionExclusion,
    SubscriptionSettings,
    SubscriptionStatus,
    SubscriptionTier,
    TierName,
    UserSubscription,
    UserType,
)
from projectbrain.core.database.repositories import SqlRepoBundle
from projectbrain.core.errors import NotFoundException, ValidationException
from projectbrain.core.logging_config import get_logger
from projectbrain.core.models.io.subscriptions import SubscriptionAnalytics, SubscriptionRead
from projectbrain.server.core.config import settings

from .stripe_client import StripeClient

logger = get_logger(__name__)

# Stripe status -> local status. Unlisted statuses keep the current value.
STRIPE_STATUS_MAP = {
    "active": SubscriptionStatus.ACTIVE.value,
    "trialing": SubscriptionStatus.TRIALING.value,
    "past_due": SubscriptionStatus.PAST_DUE.value,
    "canceled": SubscriptionStatus.CANCELED.value,
    "unpaid": SubscriptionStatus.EXPIRED.value,
}


def _from_unix(value: Optional[int]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc).replace(tzinfo=None)


def _first_item(stripe_subscription: Dict[str, Any]) -> Dict[str, Any]:
    items = (stripe_subscription.get("items") or {}).get("data") or []
    return items[0] if items else {}


def _normalize_user_type(user_type: str) -> str:
    try:
        return UserType(user_type.lower()).value
    except ValueError:
        raise ValidationException(f"Unknown user type '{user_type}'", {"user_type": user_type}) from None


class SubscriptionService:
    """Subscription lifecycle and tier resolution."""

    def __init__(self, repos: SqlRepoBundle, stripe_client: Optional[StripeClient] = None) -> None:
        self.repos = repos
        self.stripe = stripe_client or StripeClient(settings.stripe)

    # =====================================================================
    # Tiers
    # =====================================================================

    async def get_tier(self, name: str, user_type: str) -> SubscriptionTier:
        """Return the tier row, seeding it from the configured limits when absent.

        Raises:
            ValidationException: the tier is not offered for this user type
        """
        user_type = _normalize_user_type(user_type)
        tier = await self.repos.subscription_tiers.get_by_name(name, user_type)
        if tier is not None:
            return tier
        features = settings.tier_limits.get(user_type, {}).get(name)
        if features is None:
            raise ValidationException(f"Unknown tier '{name}' for {user_type}", {"tier": name})
        return await self.repos.subscription_tiers.create(
            SubscriptionTier(name=name, user_type=user_type, features=dict(features))
        )

    async def get_user_subscription(self, user_id: str, user_type: str) -> Optional[UserSubscription]:
        return await self.repos.subscriptions.get_latest(user_id, _normalize_user_type(user_type))

    async def get_user_tier(self, user_id: str, user_type: str) -> str:
        """Effective tier name for the user.

        Falls back to Free when the user is excluded, when subscriptions are
        switched off for the user type, or when there is no active/trialing
        subscription.
        """
        user_type = _normalize_user_type(user_type)
        if await self.is_user_excluded(user_id, user_type):
            return TierName.FREE.value
        if not await self.is_subscription_required(user_type):
            return TierName.FREE.value
        subscription = await self.repos.subscriptions.get_latest(user_id, user_type)
        if subscription is None or subscription.status not in ENTITLED_STATUSES:
            return TierName.FREE.value
        tier = await self.repos.subscription_tiers.get_by_id(subscription.tier_id)
        return tier.name if tier else TierName.FREE.value

    async def describe(self, subscription: UserSubscription) -> SubscriptionRead:
        tier = await self.repos.subscription_tiers.get_by_id(subscription.tier_id)
        return SubscriptionRead(
            id=subscription.id,  # type: ignore[arg-type]
            user_id=subscription.user_id,
            user_type=subscription.user_type,
            tier=tier.name if tier else TierName.FREE.value,
            status=subscription.status,
            stripe_customer_id=subscription.stripe_customer_id,
            stripe_subscription_id=subscription.stripe_subscription_id,
            trial_ends_at=subscription.trial_ends_at,
            current_period_start=subscription.current_period_start,
            current_period_end=subscription.current_period_end,
            canceled_at=subscription.canceled_at,
            expired_at=subscription.expired_at,
        )

    # =====================================================================
    # Stripe lifecycle
    # =====================================================================

    async def create_checkout_session(self, user_id: str, user_type: str, tier: str, is_annual: bool) -> str:
        """Start a Stripe checkout for the given plan.

        The Stripe customer is created on first checkout and remembered on the
        latest subscription row (a placeholder incomplete Free row when the
        user has none).

        Returns:
            The checkout URL
        """
        user_type = _normalize_user_type(user_type)
        user = await self.repos.users.get_by_id(user_id)
        if user is None:
            raise NotFoundException(f"User '{user_id}' not found", code="USER_NOT_FOUND")
        await self.get_tier(tier, user_type)

        subscription = await self.repos.subscriptions.get_latest(user_id, user_type)
        customer_id = subscription.stripe_customer_id if subscription else None
        if not customer_id:
            customer_id = await self.stripe.create_customer(user_id, user.email, user.full_name)
            if subscription is None:
                free_tier = await self.get_tier(TierName.FREE.value, user_type)
                subscription = UserSubscription(
                    user_id=user_id,
                    user_type=user_type,
                    tier_id=free_tier.id,  # type: ignore[arg-type]
                    status=SubscriptionStatus.INCOMPLETE.value,
                )
            subscription.stripe_customer_id = customer_id
            subscription.updated_at = datetime.utcnow()
            await self.repos.subscriptions.update(subscription)

        return await self.stripe.create_checkout_session(user_id, user_type, tier, is_annual, customer_id)

    async def update_subscription_from_stripe(self, stripe_subscription_id: str) -> Optional[UserSubscription]:
        """Copy the current Stripe subscription state onto the local row.

        Returns:
            The updated subscription, or None when no local row can be matched
        """
        remote = await self.stripe.get_subscription(stripe_subscription_id)
        metadata = remote.get("metadata") or {}
        item = _first_item(remote)

        local = await self.repos.subscriptions.get_by_stripe_subscription_id(stripe_subscription_id)
        if local is None and metadata.get("userId"):
            local = await self.repos.subscriptions.get_latest(
                metadata["userId"], _normalize_user_type(metadata.get("userType", UserType.USER.value))
            )
        if local is None and remote.get("customer"):
            local = await self.repos.subscriptions.get_by_stripe_customer_id(remote["customer"])
        if local is None:
            logger.warning(f"No local subscription matches Stripe subscription {stripe_subscription_id}")
            return None

        now = datetime.utcnow()
        local.stripe_subscription_id = stripe_subscription_id
        if remote.get("customer"):
            local.stripe_customer_id = remote["customer"]
        local.status = STRIPE_STATUS_MAP.get(remote.get("status", ""), local.status)

        period_start = remote.get("current_period_start") or item.get("current_period_start")
        period_end = remote.get("current_period_end") or item.get("current_period_end")
        if period_start:
            local.current_period_start = _from_unix(period_start)  # type: ignore[assignment]
        if period_end:
            local.current_period_end = _from_unix(period_end)  # type: ignore[assignment]
        local.trial_ends_at = _from_unix(remote.get("trial_end"))
        price = item.get("price") or {}
        if price.get("id"):
            local.stripe_price_id = price["id"]

        if metadata.get("tier"):
            tier = await self.get_tier(metadata["tier"], local.user_type)
            local.tier_id = tier.id  # type: ignore[assignment]

        if local.status == SubscriptionStatus.CANCELED.value and local.canceled_at is None:
            local.canceled_at = _from_unix(remote.get("canceled_at")) or now
        if local.status == SubscriptionStatus.EXPIRED.value and local.expired_at is None:
            local.expired_at = now
        local.updated_at = now

        saved = await self.repos.subscriptions.update(local)
        logger.info(f"Subscription {saved.id} synced from Stripe: status={saved.status}")
        return saved

    async def cancel_subscription(self, user_id: str, user_type: str) -> UserSubscription:
        subscription = await self.repos.subscriptions.get_latest(user_id, _normalize_user_type(user_type))
        if subscription is None:
            raise NotFoundException("No subscription found", code="SUBSCRIPTION_NOT_FOUND")
        if subscription.stripe_subscription_id:
            await self.stripe.cancel_subscription(subscription.stripe_subscription_id)
        now = datetime.utcnow()
        subscription.status = SubscriptionStatus.CANCELED.value
        subscription.canceled_at = now
        subscription.updated_at = now
        return await self.repos.subscriptions.update(subscription)

    async def start_trial(self, user_id: str, user_type: str, tier: str) -> UserSubscription:
        """Start a local trial without a payment method.

        Raises:
            ValidationException: unknown tier, or an active/trialing subscription exists
        """
        user_type = _normalize_user_type(user_type)
        if tier == TierName.FREE.value:
            raise ValidationException("Trials are only available for paid tiers", {"tier": tier})
        tier_row = await self.get_tier(tier, user_type)
        existing = await self.repos.subscriptions.get_latest(user_id, user_type)
        if existing is not None and existing.status in ENTITLED_STATUSES:
            raise ValidationException("User already has an active subscription")

        now = datetime.utcnow()
        trial_end = now + timedelta(days=settings.stripe.trial_days)
        subscription = UserSubscription(
            user_id=user_id,
            user_type=user_type,
            tier_id=tier_row.id,  # type: ignore[arg-type]
            status=SubscriptionStatus.TRIALING.value,
            trial_ends_at=trial_end,
            current_period_start=now,
            current_period_end=trial_end,
            stripe_customer_id=existing.stripe_customer_id if existing else None,
        )
        created = await self.repos.subscriptions.create(subscription)
        logger.info(f"Started {tier} trial for {user_type} {user_id}")
        return created

    async def get_all_subscriptions(self, skip: int = 0, take: int = 50) -> List[UserSubscription]:
        return await self.repos.subscriptions.list(limit=take, offset=skip)

    # =====================================================================
    # Settings and exclusions
    # =====================================================================

    async def get_subscription_settings(self) -> SubscriptionSettings:
        return await self.repos.subscription_settings.get_or_create()

    async def update_subscription_settings(
        self, enable_user_subscriptions: bool, enable_coach_subscriptions: bool, updated_by: str
    ) -> SubscriptionSettings:
        current = await self.repos.subscription_settings.get_or_create()
        current.enable_user_subscriptions = enable_user_subscriptions
        current.enable_coach_subscriptions = enable_coach_subscriptions
        current.updated_by = updated_by
        current.updated_at = datetime.utcnow()
        logger.info(
            f"Subscription settings updated by {updated_by}: users={enable_user_subscriptions}, "
            f"coaches={enable_coach_subscriptions}"
        )
        return await self.repos.subscription_settings.update(current)

    async def is_subscription_required(self, user_type: str) -> bool:
        current = await self.repos.subscription_settings.get_or_create()
        if _normalize_user_type(user_type) == UserType.COACH.value:
            return current.enable_coach_subscriptions
        return current.enable_user_subscriptions

    async def exclude_user(
        self, user_id: str, user_type: str, excluded_by: str, reason: Optional[str] = None
    ) -> SubscriptionExclusion:
        user_type = _normalize_user_type(user_type)
        exclusion = await self.repos.subscription_exclusions.get_for(user_id, user_type)
        if exclusion is None:
            exclusion = SubscriptionExclusion(user_id=user_id, user_type=user_type, excluded_by=excluded_by)
        exclusion.excluded_by = excluded_by
        exclusion.reason = reason
        logger.info(f"{user_type} {user_id} excluded from subscriptions by {excluded_by}")
        return await self.repos.subscription_exclusions.update(exclusion)

    async def remove_exclusion(self, user_id: str, user_type: str) -> bool:
        exclusion = await self.repos.subscription_exclusions.get_for(user_id, _normalize_user_type(user_type))
        if exclusion is None:
            return False
        return await self.repos.subscription_exclusions.delete(exclusion.id)  # type: ignore[arg-type]

    async def is_user_excluded(self, user_id: str, user_type: str) -> bool:
        return await self.repos.subscription_exclusions.get_for(user_id, _normalize_user_type(user_type)) is not None

    async def get_exclusions(self) -> List[SubscriptionExclusion]:
        return await self.repos.subscription_exclusions.list()


class SubscriptionAnalyticsService:
    """Aggregate subscription counts for the admin dashboard."""

    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def count_paid_subscribers(self, user_type: Optional[str] = None) -> int:
        return await self.repos.subscriptions.count_paid(list(ENTITLED_STATUSES), user_type)

    async def count_by_status(self, user_type: Optional[str] = None) -> Dict[str, int]:
        return await self.repos.subscriptions.count_by_status(user_type)

    async def count_by_tier(self, user_type: Optional[str] = None) -> Dict[str, int]:
        return await self.repos.subscriptions.count_by_tier(list(ENTITLED_STATUSES), user_type)

    async def summary(self) -> SubscriptionAnalytics:
        return SubscriptionAnalytics(
            paid_subscribers=await self.count_paid_subscribers(),
            paid_users=await self.count_paid_subscribers(UserType.USER.value),
            paid_coaches=await self.count_paid_subscribers(UserType.COACH.value),
            by_status=await self.count_by_status(),
            by_tier=await self.count_by_tier(),
        )

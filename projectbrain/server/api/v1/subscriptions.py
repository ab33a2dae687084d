"""
API endpoints for the caller's subscription.

Current plan and effective tier, Stripe checkout, cancellation, trials, and
the usage counters the feature gate checks against.
"""

from fastapi import APIRouter, Query

from projectbrain.core.database.entities.subscriptions import UserType
from projectbrain.core.errors import NotFoundException
from projectbrain.core.logging_config import get_logger
from projectbrain.core.models.io.subscriptions import (
    CheckoutRequest,
    CheckoutResponse,
    SubscriptionRead,
    TierRead,
    TrialRequest,
    UsageRead,
)
from projectbrain.server.services.deps import CurrentUserDep, FeatureGateDep, SubscriptionServiceDep

logger = get_logger(__name__)

router = APIRouter(tags=["subscriptions"])

UserTypeQuery = Query(UserType.USER.value, description="Which account side to act on: user or coach")


@router.get(
    "/me",
    response_model=SubscriptionRead,
    summary="Get My Subscription",
    description="The caller's most recent subscription for the given account side.",
    responses={404: {"description": "No subscription"}},
)
async def get_my_subscription(
    user: CurrentUserDep, subscriptions: SubscriptionServiceDep, user_type: str = UserTypeQuery
) -> SubscriptionRead:
    subscription = await subscriptions.get_user_subscription(user.id, user_type)
    if subscription is None:
        raise NotFoundException("No subscription found", code="SUBSCRIPTION_NOT_FOUND")
    return await subscriptions.describe(subscription)


@router.get(
    "/tier",
    response_model=TierRead,
    summary="Get Effective Tier",
    description="The tier currently applied to the caller, taking exclusions and global settings into account.",
)
async def get_my_tier(
    user: CurrentUserDep, subscriptions: SubscriptionServiceDep, user_type: str = UserTypeQuery
) -> TierRead:
    return TierRead(user_type=user_type, tier=await subscriptions.get_user_tier(user.id, user_type))


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    summary="Start Checkout",
    description="Create a Stripe checkout session for a paid tier.",
    response_description="The hosted checkout URL.",
    responses={
        400: {"description": "Unknown tier or no price configured"},
        503: {"description": "Stripe is not configured"},
    },
)
async def create_checkout(
    payload: CheckoutRequest, user: CurrentUserDep, subscriptions: SubscriptionServiceDep
) -> CheckoutResponse:
    """
    Start a Stripe checkout.

    - **user_type**: user or coach.
    - **tier**: Pro or Ultimate.
    - **is_annual**: Annual instead of monthly billing.
    """
    url = await subscriptions.create_checkout_session(user.id, payload.user_type, payload.tier, payload.is_annual)
    return CheckoutResponse(checkout_url=url)


@router.post(
    "/cancel",
    response_model=SubscriptionRead,
    summary="Cancel Subscription",
    description="Cancel the caller's subscription immediately, in Stripe and locally.",
    responses={404: {"description": "No subscription"}},
)
async def cancel_subscription(
    user: CurrentUserDep, subscriptions: SubscriptionServiceDep, user_type: str = UserTypeQuery
) -> SubscriptionRead:
    subscription = await subscriptions.cancel_subscription(user.id, user_type)
    return await subscriptions.describe(subscription)


@router.post(
    "/trial",
    response_model=SubscriptionRead,
    summary="Start Trial",
    description="Start a free trial of a paid tier.",
    responses={400: {"description": "Unknown tier or already subscribed"}},
)
async def start_trial(
    payload: TrialRequest, user: CurrentUserDep, subscriptions: SubscriptionServiceDep
) -> SubscriptionRead:
    subscription = await subscriptions.start_trial(user.id, payload.user_type, payload.tier)
    return await subscriptions.describe(subscription)


@router.get(
    "/usage",
    response_model=UsageRead,
    summary="Get Usage",
    description="Current usage counters and the limits of the caller's effective tier.",
)
async def get_usage(user: CurrentUserDep, feature_gate: FeatureGateDep, user_type: str = UserTypeQuery) -> UsageRead:
    return UsageRead(**await feature_gate.get_usage_summary(user.id, user_type))

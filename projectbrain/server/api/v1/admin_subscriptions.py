"""
Admin API endpoints for subscriptions.

Global subscription switches, per-user exclusions, subscription listings
and subscription analytics.
"""

from typing import List

from fastapi import APIRouter, Query, status

from projectbrain.core.database.entities.subscriptions import UserType
from projectbrain.core.errors import NotFoundException
from projectbrain.core.logging_config import get_logger
from projectbrain.core.models.io.common import PagedRequest
from projectbrain.core.models.io.subscriptions import (
    ExclusionCreate,
    ExclusionRead,
    SubscriptionAnalytics,
    SubscriptionRead,
    SubscriptionSettingsRead,
    SubscriptionSettingsUpdate,
)
from projectbrain.server.services.deps import AdminUserDep, SubscriptionAnalyticsDep, SubscriptionServiceDep

logger = get_logger(__name__)

router = APIRouter(tags=["admin-subscriptions"])


@router.get(
    "/settings",
    response_model=SubscriptionSettingsRead,
    summary="Get Subscription Settings",
    description="Whether subscriptions are enforced for users and for coaches.",
)
async def get_settings(admin: AdminUserDep, subscriptions: SubscriptionServiceDep) -> SubscriptionSettingsRead:
    return SubscriptionSettingsRead.model_validate(await subscriptions.get_subscription_settings())


@router.put(
    "/settings",
    response_model=SubscriptionSettingsRead,
    summary="Update Subscription Settings",
    description="Turn subscription enforcement on or off per account side. Disabled sides get the Free tier.",
)
async def update_settings(
    payload: SubscriptionSettingsUpdate, admin: AdminUserDep, subscriptions: SubscriptionServiceDep
) -> SubscriptionSettingsRead:
    updated = await subscriptions.update_subscription_settings(
        payload.enable_user_subscriptions, payload.enable_coach_subscriptions, admin.id
    )
    return SubscriptionSettingsRead.model_validate(updated)


@router.get(
    "/exclusions",
    response_model=List[ExclusionRead],
    summary="List Exclusions",
    description="Users excluded from subscription requirements.",
)
async def list_exclusions(admin: AdminUserDep, subscriptions: SubscriptionServiceDep) -> List[ExclusionRead]:
    return [ExclusionRead.model_validate(e) for e in await subscriptions.get_exclusions()]


@router.post(
    "/exclusions",
    response_model=ExclusionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Exclude User",
    description="Exclude a user from subscription requirements. Re-excluding updates the reason.",
)
async def add_exclusion(
    payload: ExclusionCreate, admin: AdminUserDep, subscriptions: SubscriptionServiceDep
) -> ExclusionRead:
    """
    Exclude a user.

    - **user_id**: The user to exclude.
    - **user_type**: user or coach.
    - **reason**: Optional note for other admins.
    """
    exclusion = await subscriptions.exclude_user(payload.user_id, payload.user_type, admin.id, payload.reason)
    logger.info(f"Admin {admin.id} excluded {payload.user_type} {payload.user_id} from subscriptions")
    return ExclusionRead.model_validate(exclusion)


@router.delete(
    "/exclusions/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove Exclusion",
    responses={404: {"description": "Exclusion not found"}},
)
async def remove_exclusion(
    user_id: str,
    admin: AdminUserDep,
    subscriptions: SubscriptionServiceDep,
    user_type: str = Query(UserType.USER.value),
) -> None:
    if not await subscriptions.remove_exclusion(user_id, user_type):
        raise NotFoundException("Exclusion not found", code="EXCLUSION_NOT_FOUND")


@router.get(
    "/all",
    response_model=List[SubscriptionRead],
    summary="List Subscriptions",
    description="All subscriptions, paged.",
)
async def list_subscriptions(
    admin: AdminUserDep,
    subscriptions: SubscriptionServiceDep,
    page: int = Query(1),
    page_size: int = Query(20),
) -> List[SubscriptionRead]:
    paging = PagedRequest(page=page, page_size=page_size)
    items = await subscriptions.get_all_subscriptions(paging.skip, paging.take)
    return [await subscriptions.describe(s) for s in items]


@router.get(
    "/user/{user_id}",
    response_model=SubscriptionRead,
    summary="Get User Subscription",
    responses={404: {"description": "No subscription"}},
)
async def get_user_subscription(
    user_id: str,
    admin: AdminUserDep,
    subscriptions: SubscriptionServiceDep,
    user_type: str = Query(UserType.USER.value),
) -> SubscriptionRead:
    subscription = await subscriptions.get_user_subscription(user_id, user_type)
    if subscription is None:
        raise NotFoundException("No subscription found", code="SUBSCRIPTION_NOT_FOUND")
    return await subscriptions.describe(subscription)


@router.get(
    "/analytics",
    response_model=SubscriptionAnalytics,
    summary="Subscription Analytics",
    description="Paid subscriber counts and breakdowns by status and tier.",
)
async def get_analytics(admin: AdminUserDep, analytics: SubscriptionAnalyticsDep) -> SubscriptionAnalytics:
    return await analytics.summary()

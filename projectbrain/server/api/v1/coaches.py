"""
API endpoints for coaches.

Covers the coach directory and profiles, coach availability, connection
requests between users and coaches, the coach's client list, and coach
ratings.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, status

from projectbrain.core.database.entities.connections import ConnectionStatus, RequestedBy
from projectbrain.core.database.entities.subscriptions import UserType
from projectbrain.core.database.entities.users import UserRole
from projectbrain.core.errors import AppException, NotFoundException
from projectbrain.core.logging_config import get_logger
from projectbrain.core.models.io.coach_ratings import CoachRatingCreate, CoachRatingRead, CoachRatingSummary
from projectbrain.core.models.io.common import MessageResponse, PagedRequest
from projectbrain.core.models.io.connections import ConnectionRead, ConnectionRequest, ConnectionStatusRead
from projectbrain.core.models.io.users import (
    AvailabilityRead,
    AvailabilityUpdate,
    CoachProfileRead,
    CoachProfileUpsert,
    CoachSearchResult,
)
from projectbrain.server.services.deps import (
    CoachProfileServiceDep,
    CoachRatingServiceDep,
    CoachUserDep,
    ConnectionServiceDep,
    CurrentUserDep,
    FeatureGateDep,
    UserServiceDep,
)
from projectbrain.services.connections import LIVE_STATUSES

logger = get_logger(__name__)

router = APIRouter(tags=["coaches"])


# =====================================================================
# Directory and profiles
# =====================================================================


@router.get(
    "/search",
    response_model=List[CoachSearchResult],
    summary="Search Coaches",
    description="Search onboarded coaches by location, client age group and specialism.",
    response_description="Matching coaches.",
)
async def search_coaches(
    user: CurrentUserDep,
    profiles: CoachProfileServiceDep,
    city: Optional[str] = None,
    state_province: Optional[str] = None,
    country: Optional[str] = None,
    age_groups: Optional[List[str]] = Query(None),
    specialisms: Optional[List[str]] = Query(None),
) -> List[CoachSearchResult]:
    """
    Search the coach directory.

    - **city** / **state_province** / **country**: Case-insensitive substring filters.
    - **age_groups**: Matches coaches serving any of the given age groups.
    - **specialisms**: Matches coaches with any of the given specialisms.

    Coaches that list no age groups or specialisms match any filter on that field.
    """
    matches = await profiles.search(city, state_province, country, age_groups, specialisms)
    return [
        CoachSearchResult(
            user_id=coach.id,
            full_name=coach.full_name,
            city=coach.city,
            state_province=coach.state_province,
            country=coach.country,
            qualifications=profile.qualifications,
            specialisms=profile.specialisms,
            age_groups=profile.age_groups,
            availability_status=profile.availability_status,
        )
        for profile, coach in matches
    ]


@router.put(
    "/me",
    response_model=CoachProfileRead,
    summary="Create or Update Coach Profile",
    description="Onboard the calling user as a coach, or update their coach profile.",
    response_description="The saved coach profile.",
)
async def upsert_my_profile(
    payload: CoachProfileUpsert, user: CurrentUserDep, profiles: CoachProfileServiceDep
) -> CoachProfileRead:
    """
    Create or update the caller's coach profile.

    Saving a profile grants the coach role.

    - **qualifications**: Qualification names.
    - **specialisms**: Coaching specialisms.
    - **age_groups**: Client age groups served.
    """
    profile = await profiles.create_or_update(user.id, payload.qualifications, payload.specialisms, payload.age_groups)
    return CoachProfileRead.model_validate(profile)


@router.get(
    "/availability/status",
    response_model=AvailabilityRead,
    summary="Get Availability",
    description="Get the calling coach's availability status.",
    responses={404: {"description": "Coach profile not found"}},
)
async def get_availability(coach: CoachUserDep, profiles: CoachProfileServiceDep) -> AvailabilityRead:
    profile = await profiles.get_by_user_id(coach.id)
    if profile is None:
        raise NotFoundException("Coach profile not found", code="PROFILE_NOT_FOUND")
    return AvailabilityRead(status=profile.availability_status)


@router.put(
    "/availability/status",
    response_model=AvailabilityRead,
    summary="Update Availability",
    description="Set the calling coach's availability to available, busy, away or offline.",
    responses={
        400: {"description": "Invalid status"},
        404: {"description": "Coach profile not found"},
    },
)
async def update_availability(
    payload: AvailabilityUpdate, coach: CoachUserDep, profiles: CoachProfileServiceDep
) -> AvailabilityRead:
    if not await profiles.update_availability_status(coach.id, payload.status):
        raise NotFoundException("Coach profile not found", code="PROFILE_NOT_FOUND")
    return AvailabilityRead(status=payload.status)


# =====================================================================
# Connections (user side)
# =====================================================================


@router.get(
    "/connected",
    response_model=List[ConnectionStatusRead],
    summary="List Connected Coaches",
    description="List coaches the caller is connected to or has a pending request with.",
)
async def get_connected_coaches(user: CurrentUserDep, connections: ConnectionServiceDep) -> List[ConnectionStatusRead]:
    pairs = await connections.get_connected_coach_ids(user.id)
    return [
        ConnectionStatusRead(
            coach_id=coach_id,
            status=state,
            is_connected=state == ConnectionStatus.ACCEPTED.value,
        )
        for coach_id, state in pairs
    ]


# =====================================================================
# Clients (coach side)
# =====================================================================


@router.get(
    "/clients",
    response_model=List[ConnectionRead],
    summary="List Clients",
    description="List the calling coach's accepted and pending client connections.",
)
async def get_clients(coach: CoachUserDep, connections: ConnectionServiceDep) -> List[ConnectionRead]:
    items = await connections.get_connections_for(coach.id)
    return [ConnectionRead.model_validate(c) for c in items if c.coach_id == coach.id and c.status in LIVE_STATUSES]


@router.post(
    "/clients/{user_id}/accept",
    response_model=MessageResponse,
    summary="Accept Client",
    description="Accept a pending connection request from a user.",
    responses={404: {"description": "No pending request from this user"}},
)
async def accept_client(user_id: str, coach: CoachUserDep, connections: ConnectionServiceDep) -> MessageResponse:
    if not await connections.accept_connection(user_id, coach.id):
        raise NotFoundException("No pending connection request from this user", code="CONNECTION_NOT_FOUND")
    logger.info(f"Coach {coach.id} accepted client {user_id}")
    return MessageResponse(message="Connection accepted")


@router.post(
    "/clients/{user_id}/reject",
    response_model=MessageResponse,
    summary="Reject Client",
    description="Reject a pending connection request from a user.",
    responses={404: {"description": "No pending request from this user"}},
)
async def reject_client(user_id: str, coach: CoachUserDep, connections: ConnectionServiceDep) -> MessageResponse:
    if not await connections.reject_connection(user_id, coach.id):
        raise NotFoundException("No pending connection request from this user", code="CONNECTION_NOT_FOUND")
    return MessageResponse(message="Connection rejected")


# =====================================================================
# Ratings
# =====================================================================


async def _rating_summary(
    coach_id: str, ratings: CoachRatingServiceDep, page: int, page_size: int
) -> CoachRatingSummary:
    paging = PagedRequest(page=page, page_size=page_size)
    items = await ratings.get_ratings_by_coach(coach_id, paging.skip, paging.take)
    return CoachRatingSummary(
        coach_id=coach_id,
        average_rating=await ratings.get_average_rating(coach_id),
        rating_count=await ratings.get_rating_count(coach_id),
        ratings=[CoachRatingRead.model_validate(r) for r in items],
    )


@router.get(
    "/ratings/mine",
    response_model=CoachRatingSummary,
    summary="Get My Ratings",
    description="Ratings received by the calling coach, with the average and total count.",
)
async def get_my_ratings(
    coach: CoachUserDep,
    ratings: CoachRatingServiceDep,
    page: int = Query(1),
    page_size: int = Query(20),
) -> CoachRatingSummary:
    return await _rating_summary(coach.id, ratings, page, page_size)


# =====================================================================
# Per-coach routes
# =====================================================================


@router.get(
    "/{user_id}/profile",
    response_model=CoachProfileRead,
    summary="Get Coach Profile",
    description="Retrieve a coach's public profile.",
    responses={404: {"description": "Coach profile not found"}},
)
async def get_coach_profile(user_id: str, user: CurrentUserDep, profiles: CoachProfileServiceDep) -> CoachProfileRead:
    profile = await profiles.get_by_user_id(user_id)
    if profile is None:
        raise NotFoundException("Coach profile not found", code="PROFILE_NOT_FOUND")
    return CoachProfileRead.model_validate(profile)


@router.post(
    "/{coach_id}/connections",
    response_model=ConnectionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Request Connection",
    description="Ask to connect with a coach. Re-requesting revives a cancelled or rejected connection.",
    response_description="The pending or already live connection.",
    responses={
        400: {"description": "Self connection or connection limit reached"},
        404: {"description": "Coach not found"},
    },
)
async def request_connection(
    coach_id: str,
    payload: ConnectionRequest,
    user: CurrentUserDep,
    users: UserServiceDep,
    connections: ConnectionServiceDep,
    feature_gate: FeatureGateDep,
) -> ConnectionRead:
    """
    Request a connection with a coach.

    Both the caller's coach connection limit and the coach's client
    connection limit must allow the new connection.

    - **message**: Optional note shown to the coach.
    """
    if coach_id == user.id:
        raise AppException("CANNOT_CONNECT_TO_SELF", "You cannot connect to yourself")
    coach = await users.get_by_id(coach_id)
    if coach is None or not coach.has_role(UserRole.COACH):
        raise NotFoundException("Coach not found", code="COACH_NOT_FOUND")

    existing = await connections.get_connection(user.id, coach_id)
    if existing is None or existing.status not in LIVE_STATUSES:
        checks = (
            (user.id, UserType.USER.value, "coach_connections"),
            (coach_id, UserType.COACH.value, "client_connections"),
        )
        for subject_id, user_type, feature in checks:
            allowed, reason = await feature_gate.check_feature_access(subject_id, user_type, feature)
            if not allowed:
                raise AppException("CONNECTION_LIMIT_REACHED", reason or "Connection limit reached")

    connection = await connections.create_connection_request(user.id, coach_id, RequestedBy.USER, payload.message)
    return ConnectionRead.model_validate(connection)


@router.delete(
    "/{coach_id}/connections",
    response_model=MessageResponse,
    summary="Cancel or Remove Connection",
    description="Cancel a pending request or remove an existing connection with a coach.",
)
async def remove_connection(coach_id: str, user: CurrentUserDep, connections: ConnectionServiceDep) -> MessageResponse:
    await connections.cancel_or_delete_connection(user.id, coach_id)
    return MessageResponse(message="Connection removed")


@router.get(
    "/{coach_id}/connection-status",
    response_model=ConnectionStatusRead,
    summary="Get Connection Status",
    description="Status of the caller's connection with a coach.",
)
async def get_connection_status(
    coach_id: str, user: CurrentUserDep, connections: ConnectionServiceDep
) -> ConnectionStatusRead:
    connection = await connections.get_connection(user.id, coach_id)
    state = connection.status if connection else None
    return ConnectionStatusRead(
        coach_id=coach_id, status=state, is_connected=state == ConnectionStatus.ACCEPTED.value
    )


@router.post(
    "/{coach_id}/ratings",
    response_model=CoachRatingRead,
    summary="Rate Coach",
    description="Create or update the caller's rating of a connected coach.",
    responses={400: {"description": "Rating outside 1-5 or not connected"}},
)
async def rate_coach(
    coach_id: str, payload: CoachRatingCreate, user: CurrentUserDep, ratings: CoachRatingServiceDep
) -> CoachRatingRead:
    """
    Rate a coach.

    - **rating**: Integer from 1 to 5.
    - **feedback**: Optional free-text feedback.
    """
    rating = await ratings.create_or_update_rating(user.id, coach_id, payload.rating, payload.feedback)
    return CoachRatingRead.model_validate(rating)


@router.get(
    "/{coach_id}/ratings",
    response_model=CoachRatingSummary,
    summary="Get Coach Ratings",
    description="Ratings received by a coach, with the average and total count.",
)
async def get_coach_ratings(
    coach_id: str,
    user: CurrentUserDep,
    ratings: CoachRatingServiceDep,
    page: int = Query(1),
    page_size: int = Query(20),
) -> CoachRatingSummary:
    return await _rating_summary(coach_id, ratings, page, page_size)


@router.get(
    "/{coach_id}/ratings/me",
    response_model=CoachRatingRead,
    summary="Get My Rating of Coach",
    description="The caller's rating of a coach.",
    responses={404: {"description": "No rating yet"}},
)
async def get_my_rating(coach_id: str, user: CurrentUserDep, ratings: CoachRatingServiceDep) -> CoachRatingRead:
    rating = await ratings.get_rating(user.id, coach_id)
    if rating is None:
        raise NotFoundException("Rating not found", code="RATING_NOT_FOUND")
    return CoachRatingRead.model_validate(rating)

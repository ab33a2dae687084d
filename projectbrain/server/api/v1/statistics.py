"""
API endpoints for dashboard statistics.

Counts for the caller's own dashboard, the coach dashboard and the admin
dashboard.
"""

from typing import Optional

from fastapi import APIRouter, Query

from projectbrain.core.models.io.statistics import CountStatistic
from projectbrain.server.services.deps import AdminUserDep, CoachUserDep, CurrentUserDep, StatisticsServiceDep

router = APIRouter(tags=["statistics"])


# =====================================================================
# User
# =====================================================================


@router.get(
    "/resources",
    response_model=CountStatistic,
    summary="My Resource Count",
    description="Number of private files the caller has uploaded.",
)
async def my_resources_count(user: CurrentUserDep, statistics: StatisticsServiceDep) -> CountStatistic:
    return CountStatistic(name="user_resources", count=await statistics.user_resources_count(user.id))


# =====================================================================
# Coach
# =====================================================================


@router.get(
    "/coach/clients",
    response_model=CountStatistic,
    summary="Client Count",
    description="Number of accepted clients of the calling coach.",
)
async def coach_clients_count(coach: CoachUserDep, statistics: StatisticsServiceDep) -> CountStatistic:
    return CountStatistic(name="coach_clients", count=await statistics.coach_clients_count(coach.id))


@router.get(
    "/coach/pending-clients",
    response_model=CountStatistic,
    summary="Pending Client Count",
    description="Number of connection requests awaiting the calling coach's response.",
)
async def pending_clients_count(coach: CoachUserDep, statistics: StatisticsServiceDep) -> CountStatistic:
    return CountStatistic(name="pending_clients", count=await statistics.pending_clients_count(coach.id))


# =====================================================================
# Admin
# =====================================================================


@router.get("/admin/users", response_model=CountStatistic, summary="All Users Count")
async def all_users_count(admin: AdminUserDep, statistics: StatisticsServiceDep) -> CountStatistic:
    return CountStatistic(name="all_users", count=await statistics.all_users_count())


@router.get("/admin/coaches", response_model=CountStatistic, summary="Coaches Count")
async def coaches_count(admin: AdminUserDep, statistics: StatisticsServiceDep) -> CountStatistic:
    return CountStatistic(name="coaches", count=await statistics.coaches_count())


@router.get(
    "/admin/normal-users",
    response_model=CountStatistic,
    summary="Normal Users Count",
    description="Users that are neither coaches nor admins.",
)
async def normal_users_count(admin: AdminUserDep, statistics: StatisticsServiceDep) -> CountStatistic:
    return CountStatistic(name="normal_users", count=await statistics.normal_users_count())


@router.get("/admin/shared-resources", response_model=CountStatistic, summary="Shared Resources Count")
async def shared_resources_count(admin: AdminUserDep, statistics: StatisticsServiceDep) -> CountStatistic:
    return CountStatistic(name="shared_resources", count=await statistics.shared_resources_count())


@router.get("/admin/quizzes", response_model=CountStatistic, summary="Quizzes Count")
async def quizzes_count(admin: AdminUserDep, statistics: StatisticsServiceDep) -> CountStatistic:
    return CountStatistic(name="quizzes", count=await statistics.quizzes_count())


@router.get(
    "/admin/quiz-responses",
    response_model=CountStatistic,
    summary="Quiz Responses Count",
    description="Quiz responses completed in a period: today, week, month or year. Omit for all time.",
    responses={400: {"description": "Unknown period"}},
)
async def quiz_responses_count(
    admin: AdminUserDep, statistics: StatisticsServiceDep, period: Optional[str] = Query(None)
) -> CountStatistic:
    return CountStatistic(
        name="quiz_responses", count=await statistics.quiz_responses_count(period), period=period
    )


@router.get(
    "/admin/logged-in-users",
    response_model=CountStatistic,
    summary="Logged-in Users Count",
    description="Users active within the activity window.",
)
async def logged_in_users_count(admin: AdminUserDep, statistics: StatisticsServiceDep) -> CountStatistic:
    return CountStatistic(name="logged_in_users", count=await statistics.logged_in_users_count())

"""
API endpoints for daily goals.

Users set up to three goals per UTC day and tick them off. Completion
streaks count consecutive fully completed days.
"""

from typing import List

from fastapi import APIRouter

from projectbrain.core.models.io.goals import GoalComplete, GoalRead, GoalsUpsert, GoalStreak, HasGoals
from projectbrain.server.services.deps import CurrentUserDep, GoalServiceDep

router = APIRouter(tags=["goals"])


@router.get(
    "",
    response_model=List[GoalRead],
    summary="Get Today's Goals",
    description="The caller's goals for the current UTC date, ordered by index.",
)
async def get_todays_goals(user: CurrentUserDep, goals: GoalServiceDep) -> List[GoalRead]:
    return [GoalRead.model_validate(g) for g in await goals.get_todays_goals(user.id)]


@router.post(
    "",
    response_model=List[GoalRead],
    summary="Set Today's Goals",
    description="Replace today's goals with one to three new goals.",
    responses={400: {"description": "Not between 1 and 3 goals"}},
)
async def set_todays_goals(payload: GoalsUpsert, user: CurrentUserDep, goals: GoalServiceDep) -> List[GoalRead]:
    """
    Set today's goals.

    - **goals**: One to three goal messages. Missing slots are stored empty.
    """
    return [GoalRead.model_validate(g) for g in await goals.create_or_update_goals(user.id, payload.goals)]


@router.post(
    "/{index}/complete",
    response_model=List[GoalRead],
    summary="Complete Goal",
    description="Mark one of today's goals as completed or not completed.",
    responses={400: {"description": "Index out of range or goal does not exist"}},
)
async def complete_goal(
    index: int, payload: GoalComplete, user: CurrentUserDep, goals: GoalServiceDep
) -> List[GoalRead]:
    return [GoalRead.model_validate(g) for g in await goals.complete_goal(user.id, index, payload.completed)]


@router.get(
    "/streak",
    response_model=GoalStreak,
    summary="Get Completion Streak",
    description="Consecutive days, ending today, on which every goal set was completed.",
)
async def get_streak(user: CurrentUserDep, goals: GoalServiceDep) -> GoalStreak:
    return GoalStreak(streak=await goals.get_completion_streak(user.id))


@router.get(
    "/has-ever-created",
    response_model=HasGoals,
    summary="Has Ever Created Goals",
    description="Whether the caller has ever set a non-empty goal.",
)
async def has_ever_created_goals(user: CurrentUserDep, goals: GoalServiceDep) -> HasGoals:
    return HasGoals(has_ever_created_goals=await goals.has_ever_created_goals(user.id))

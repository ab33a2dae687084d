"""
Daily goal service.

Each user has three goal slots per UTC day. Saving goals always rewrites the
full day so the slots stay contiguous.
"""

from datetime import date, datetime, timedelta
from itertools import groupby
from typing import List

from projectbrain.core.database.entities.goals import GOALS_PER_DAY, Goal
from projectbrain.core.database.repositories import SqlRepoBundle
from projectbrain.core.errors import ValidationException
from projectbrain.core.logging_config import get_logger

logger = get_logger(__name__)


def utc_today() -> date:
    return datetime.utcnow().date()


def _day_completed(goals: List[Goal]) -> bool:
    filled = [g for g in goals if g.message and g.message.strip()]
    return bool(filled) and all(g.completed for g in filled)


class GoalService:
    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def get_todays_goals(self, user_id: str) -> List[Goal]:
        return await self.repos.goals.get_for_day(user_id, utc_today())

    async def create_or_update_goals(self, user_id: str, goals: List[str]) -> List[Goal]:
        """Replace today's goals with ``goals``, padding to three slots.

        Raises:
            ValidationException: fewer than one or more than three goals
        """
        if not goals or len(goals) > GOALS_PER_DAY:
            raise ValidationException(f"Goals must contain between 1 and {GOALS_PER_DAY} items")
        today = utc_today()
        messages = list(goals) + [""] * (GOALS_PER_DAY - len(goals))
        rows = [Goal(user_id=user_id, date=today, index=i, message=m) for i, m in enumerate(messages)]
        saved = await self.repos.goals.replace_for_day(user_id, today, rows)
        logger.debug(f"Saved {len(goals)} goals for user {user_id} on {today}")
        return saved

    async def complete_goal(self, user_id: str, index: int, completed: bool) -> List[Goal]:
        """Set the completion flag of one of today's goals.

        Raises:
            ValidationException: index outside 0..2, or no goal in that slot
        """
        if index < 0 or index >= GOALS_PER_DAY:
            raise ValidationException(f"Goal index must be between 0 and {GOALS_PER_DAY - 1}")
        todays = await self.get_todays_goals(user_id)
        goal = next((g for g in todays if g.index == index), None)
        if goal is None or not goal.message.strip():
            raise ValidationException(f"Goal at index {index} does not exist for today")
        goal.completed = completed
        goal.completed_at = datetime.utcnow() if completed else None
        goal.updated_at = datetime.utcnow()
        await self.repos.goals.update(goal)
        return await self.get_todays_goals(user_id)

    async def get_completion_streak(self, user_id: str) -> int:
        """Consecutive fully completed days ending today."""
        expected = utc_today()
        streak = 0
        history = await self.repos.goals.get_up_to(user_id, expected)
        for day, day_goals in groupby(history, key=lambda g: g.date):
            if day != expected or not _day_completed(list(day_goals)):
                break
            streak += 1
            expected = expected - timedelta(days=1)
        return streak

    async def has_ever_created_goals(self, user_id: str) -> bool:
        return await self.repos.goals.exists_for_user(user_id)

"""Dashboard statistics."""

from datetime import datetime, timedelta
from typing import Optional

from projectbrain.core.database.entities.connections import ConnectionStatus
from projectbrain.core.database.entities.users import UserRole
from projectbrain.core.database.repositories import SqlRepoBundle
from projectbrain.core.errors import ValidationException

from .user_activity import UserActivityService

PERIODS = ("today", "week", "month", "year")


def period_start(period: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """Start of a reporting period, or None for all time.

    Raises:
        ValidationException: unknown period name
    """
    if period is None:
        return None
    now = now or datetime.utcnow()
    today = datetime(now.year, now.month, now.day)
    if period == "today":
        return today
    if period == "week":
        return today - timedelta(days=7)
    if period == "month":
        return today - timedelta(days=30)
    if period == "year":
        return today - timedelta(days=365)
    raise ValidationException(f"Unknown period '{period}'", {"period": list(PERIODS)})


class StatisticsService:
    def __init__(self, repos: SqlRepoBundle, activity: Optional[UserActivityService] = None) -> None:
        self.repos = repos
        self.activity = activity

    async def user_resources_count(self, user_id: str) -> int:
        return await self.repos.resources.count_for_user(user_id)

    async def coach_clients_count(self, coach_id: str) -> int:
        return await self.repos.connections.count_for_coach(coach_id, ConnectionStatus.ACCEPTED.value)

    async def pending_clients_count(self, coach_id: str) -> int:
        return await self.repos.connections.count_for_coach(coach_id, ConnectionStatus.PENDING.value)

    async def shared_resources_count(self) -> int:
        return await self.repos.resources.count_shared()

    async def all_users_count(self) -> int:
        return await self.repos.users.count()

    async def coaches_count(self) -> int:
        return (await self.repos.users.count_roles())[UserRole.COACH.value]

    async def normal_users_count(self) -> int:
        return (await self.repos.users.count_roles())["_plain"]

    async def quizzes_count(self) -> int:
        return await self.repos.quizzes.count()

    async def quiz_responses_count(self, period: Optional[str] = None) -> int:
        return await self.repos.quiz_responses.count_since(period_start(period))

    async def logged_in_users_count(self) -> int:
        if self.activity is None:
            return await self.repos.users.count_active_since(datetime.utcnow() - timedelta(hours=1))
        return await self.activity.get_active_users_count()

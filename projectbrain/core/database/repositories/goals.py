"""Daily goal repository implementation."""

from __future__ import annotations

from datetime import date
from typing import List

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.goals import Goal
from .base import AsyncSqlRepository


class GoalRepository(AsyncSqlRepository[Goal]):
    """Repository for daily goals."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Goal)

    async def get_for_day(self, user_id: str, day: date) -> List[Goal]:
        """Goals for one user and day, ordered by slot index."""
        stmt = select(Goal).where((Goal.user_id == user_id) & (Goal.date == day)).order_by(Goal.index)
        return await self._all(stmt)

    async def replace_for_day(self, user_id: str, day: date, goals: List[Goal]) -> List[Goal]:
        """Delete the day's goals and insert ``goals`` in one commit.

        Args:
            user_id: Owner of the goals
            day: Goal date
            goals: New goal rows for the day

        Returns:
            The inserted goals
        """
        await self.session.execute(delete(Goal).where((Goal.user_id == user_id) & (Goal.date == day)))
        for goal in goals:
            self.session.add(goal)
        await self.session.commit()
        for goal in goals:
            await self.session.refresh(goal)
        return goals

    async def get_up_to(self, user_id: str, day: date) -> List[Goal]:
        """All goals on or before ``day``, newest day first."""
        stmt = (
            select(Goal)
            .where((Goal.user_id == user_id) & (Goal.date <= day))
            .order_by(Goal.date.desc(), Goal.index)  # type: ignore[attr-defined]
        )
        return await self._all(stmt)

    async def exists_for_user(self, user_id: str) -> bool:
        stmt = (
            select(func.count())
            .select_from(Goal)
            .where((Goal.user_id == user_id) & (func.trim(Goal.message) != ""))
        )
        return await self._scalar_count(stmt) > 0

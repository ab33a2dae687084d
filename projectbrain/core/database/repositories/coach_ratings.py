"""Coach rating repository implementation."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.coach_ratings import CoachRating
from .base import AsyncSqlRepository


class CoachRatingRepository(AsyncSqlRepository[CoachRating]):
    """Repository for coach ratings."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, CoachRating)

    async def get_by_pair(self, user_id: str, coach_id: str) -> Optional[CoachRating]:
        stmt = select(CoachRating).where((CoachRating.user_id == user_id) & (CoachRating.coach_id == coach_id))
        return await self._first(stmt)

    async def list_for_coach(self, coach_id: str, skip: int = 0, take: int = 20) -> List[CoachRating]:
        stmt = (
            select(CoachRating)
            .where(CoachRating.coach_id == coach_id)
            .order_by(CoachRating.created_at.desc())  # type: ignore[attr-defined]
            .offset(skip)
            .limit(take)
        )
        return await self._all(stmt)

    async def average_for_coach(self, coach_id: str) -> Optional[float]:
        stmt = select(func.avg(CoachRating.rating)).where(CoachRating.coach_id == coach_id)
        result = await self.session.execute(stmt)
        value = result.scalar_one_or_none()
        return float(value) if value is not None else None

    async def count_for_coach(self, coach_id: str) -> int:
        return await self.count({"coach_id": coach_id})

"""
Connection repository implementation.

Data access for user/coach connections in both directions.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.connections import Connection, ConnectionStatus
from .base import AsyncSqlRepository


class ConnectionRepository(AsyncSqlRepository[Connection]):
    """Repository for user/coach connections."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Connection)

    async def get_by_pair(self, user_id: str, coach_id: str) -> Optional[Connection]:
        """Get the connection between a user and a coach.

        Args:
            user_id: The client side of the connection
            coach_id: The coach side of the connection

        Returns:
            Connection instance or None
        """
        stmt = select(Connection).where((Connection.user_id == user_id) & (Connection.coach_id == coach_id))
        return await self._first(stmt)

    async def list_for_user(self, user_id: str, statuses: Sequence[str]) -> List[Connection]:
        stmt = (
            select(Connection)
            .where((Connection.user_id == user_id) & (Connection.status.in_(list(statuses))))  # type: ignore[attr-defined]
            .order_by(Connection.created_at.desc())  # type: ignore[attr-defined]
        )
        return await self._all(stmt)

    async def list_for_coach(self, coach_id: str, statuses: Sequence[str]) -> List[Connection]:
        stmt = (
            select(Connection)
            .where((Connection.coach_id == coach_id) & (Connection.status.in_(list(statuses))))  # type: ignore[attr-defined]
            .order_by(Connection.created_at.desc())  # type: ignore[attr-defined]
        )
        return await self._all(stmt)

    async def list_for_participant(self, participant_id: str) -> List[Connection]:
        """All connections where the id is on either side."""
        stmt = (
            select(Connection)
            .where(or_(Connection.user_id == participant_id, Connection.coach_id == participant_id))
            .order_by(Connection.created_at.desc())  # type: ignore[attr-defined]
        )
        return await self._all(stmt)

    async def count_for_user(self, user_id: str, status: str = ConnectionStatus.ACCEPTED.value) -> int:
        stmt = (
            select(func.count())
            .select_from(Connection)
            .where((Connection.user_id == user_id) & (Connection.status == status))
        )
        return await self._scalar_count(stmt)

    async def count_for_coach(self, coach_id: str, status: str = ConnectionStatus.ACCEPTED.value) -> int:
        stmt = (
            select(func.count())
            .select_from(Connection)
            .where((Connection.coach_id == coach_id) & (Connection.status == status))
        )
        return await self._scalar_count(stmt)

    async def earliest_date(self, user_id: str, coach_id: str) -> Optional[datetime]:
        stmt = select(func.min(Connection.created_at)).where(
            (Connection.user_id == user_id) & (Connection.coach_id == coach_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

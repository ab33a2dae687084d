"""
Coach message repository implementation.

Conversation paging, search and read/unread queries for coach messaging.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.coach_messages import CoachMessage, MessageType
from .base import AsyncSqlRepository


class CoachMessageRepository(AsyncSqlRepository[CoachMessage]):
    """Repository for coach messages."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, CoachMessage)

    async def get_conversation(
        self, connection_id: str, limit: int = 20, before: Optional[datetime] = None
    ) -> List[CoachMessage]:
        """Get messages for a connection, newest first.

        Args:
            connection_id: Connection whose messages to return
            limit: Maximum number of messages
            before: Only return messages created strictly before this time

        Returns:
            List of CoachMessage instances
        """
        stmt = select(CoachMessage).where(CoachMessage.connection_id == connection_id)
        if before is not None:
            stmt = stmt.where(CoachMessage.created_at < before)
        stmt = stmt.order_by(CoachMessage.created_at.desc(), CoachMessage.id.desc()).limit(limit)  # type: ignore
        return await self._all(stmt)

    async def search(self, connection_id: str, term: str) -> List[CoachMessage]:
        """Case-insensitive substring search over text messages in a connection."""
        escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        stmt = (
            select(CoachMessage)
            .where(
                (CoachMessage.connection_id == connection_id)
                & (CoachMessage.message_type == MessageType.TEXT.value)
                & (CoachMessage.content.ilike(f"%{escaped}%", escape="\\"))  # type: ignore[attr-defined]
            )
            .order_by(CoachMessage.created_at.desc())  # type: ignore[attr-defined]
        )
        return await self._all(stmt)

    async def get_latest(self, connection_id: str) -> Optional[CoachMessage]:
        stmt = (
            select(CoachMessage)
            .where(CoachMessage.connection_id == connection_id)
            .order_by(CoachMessage.created_at.desc(), CoachMessage.id.desc())  # type: ignore[attr-defined]
            .limit(1)
        )
        return await self._first(stmt)

    async def get_unread(self, connection_id: str, reader_id: str) -> List[CoachMessage]:
        """Messages in the connection sent by the other party and not yet read."""
        stmt = select(CoachMessage).where(
            (CoachMessage.connection_id == connection_id)
            & (CoachMessage.sender_id != reader_id)
            & (CoachMessage.read_at == None)  # noqa: E711
        )
        return await self._all(stmt)

    async def count_unread(self, connection_id: str, reader_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(CoachMessage)
            .where(
                (CoachMessage.connection_id == connection_id)
                & (CoachMessage.sender_id != reader_id)
                & (CoachMessage.read_at == None)  # noqa: E711
            )
        )
        return await self._scalar_count(stmt)

    async def save_all(self, messages: List[CoachMessage]) -> None:
        for message in messages:
            self.session.add(message)
        await self.session.commit()

"""
Device token repository implementation.

Data access for push notification tokens, including the queries used by
proactive validation and stale token cleanup.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import delete, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.device_tokens import DeviceToken
from .base import AsyncSqlRepository


class DeviceTokenRepository(AsyncSqlRepository[DeviceToken]):
    """Repository for device tokens."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, DeviceToken)

    async def get_by_token(self, token: str) -> Optional[DeviceToken]:
        stmt = select(DeviceToken).where(DeviceToken.token == token)
        return await self._first(stmt)

    async def get_active_for_user(self, user_id: str) -> List[DeviceToken]:
        stmt = select(DeviceToken).where((DeviceToken.user_id == user_id) & (DeviceToken.is_active == True))  # noqa: E712
        return await self._all(stmt)

    async def get_due_for_validation(self, threshold: datetime, limit: int) -> List[DeviceToken]:
        """Active tokens never validated or last validated before ``threshold``.

        Args:
            threshold: Tokens validated at or after this time are skipped
            limit: Batch size

        Returns:
            Oldest-validated tokens first
        """
        stmt = (
            select(DeviceToken)
            .where(DeviceToken.is_active == True)  # noqa: E712
            .where(or_(DeviceToken.last_validated_at == None, DeviceToken.last_validated_at < threshold))  # noqa: E711
            .order_by(DeviceToken.last_validated_at, DeviceToken.created_at)
            .limit(limit)
        )
        return await self._all(stmt)

    async def mark_invalid(self, tokens: Sequence[str], reason: str) -> int:
        """Deactivate tokens and record why.

        Returns:
            Number of rows updated
        """
        if not tokens:
            return 0
        stmt = (
            update(DeviceToken)
            .where(DeviceToken.token.in_(list(tokens)))  # type: ignore[attr-defined]
            .values(is_active=False, invalid_reason=reason)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0

    async def mark_validated(self, token_ids: Sequence[int], when: datetime) -> None:
        if not token_ids:
            return
        stmt = (
            update(DeviceToken)
            .where(DeviceToken.id.in_(list(token_ids)))  # type: ignore[union-attr]
            .values(last_validated_at=when)
        )
        await self.session.execute(stmt)
        await self.session.commit()

    async def delete_stale(self, cutoff: datetime) -> int:
        """Delete inactive tokens whose last use is older than ``cutoff``."""
        stmt = delete(DeviceToken).where(
            (DeviceToken.is_active == False) & (DeviceToken.last_used_at < cutoff)  # noqa: E712
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0

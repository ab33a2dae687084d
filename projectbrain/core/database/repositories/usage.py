"""Usage tracking repository implementations."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.usage import FileStorageUsage, UsageTracking
from .base import AsyncSqlRepository


class UsageTrackingRepository(AsyncSqlRepository[UsageTracking]):
    """Repository for per-period usage counters."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UsageTracking)

    async def get_counter(
        self, user_id: str, usage_type: str, period_type: str, period_start: datetime
    ) -> Optional[UsageTracking]:
        stmt = select(UsageTracking).where(
            (UsageTracking.user_id == user_id)
            & (UsageTracking.usage_type == usage_type)
            & (UsageTracking.period_type == period_type)
            & (UsageTracking.period_start == period_start)
        )
        return await self._first(stmt)

    async def increment(
        self, user_id: str, usage_type: str, period_type: str, period_start: datetime, amount: int = 1
    ) -> UsageTracking:
        """Add ``amount`` to the counter, creating it when absent.

        Args:
            user_id: User whose usage is tracked
            usage_type: Kind of usage
            period_type: "daily" or "monthly"
            period_start: Start of the period
            amount: Increment

        Returns:
            The updated counter row
        """
        counter = await self.get_counter(user_id, usage_type, period_type, period_start)
        if counter is None:
            counter = UsageTracking(
                user_id=user_id,
                usage_type=usage_type,
                period_type=period_type,
                period_start=period_start,
                count=0,
            )
        counter.count += amount
        counter.updated_at = datetime.utcnow()
        return await self.update(counter)


class FileStorageUsageRepository(AsyncSqlRepository[FileStorageUsage]):
    """Repository for cumulative storage usage."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, FileStorageUsage)

    async def get_for_user(self, user_id: str) -> Optional[FileStorageUsage]:
        stmt = select(FileStorageUsage).where(FileStorageUsage.user_id == user_id)
        return await self._first(stmt)

    async def add_bytes(self, user_id: str, delta: int) -> FileStorageUsage:
        """Adjust stored bytes by ``delta``, clamping at zero."""
        usage = await self.get_for_user(user_id)
        if usage is None:
            usage = FileStorageUsage(user_id=user_id, total_bytes=0)
        usage.total_bytes = max(0, usage.total_bytes + delta)
        usage.updated_at = datetime.utcnow()
        return await self.update(usage)

"""
Usage tracking service.

Counts plan-limited activity per user in daily and monthly buckets. Periods
are aligned to UTC: daily buckets start at midnight, monthly buckets on the
first of the month.
"""

from datetime import datetime
from typing import Optional

from projectbrain.core.database.entities.usage import PeriodType, UsageType
from projectbrain.core.database.repositories import SqlRepoBundle
from projectbrain.core.logging_config import get_logger

logger = get_logger(__name__)


def get_period_start(period: PeriodType | str, now: Optional[datetime] = None) -> datetime:
    """Start of the period containing ``now`` (UTC, naive).

    Raises:
        ValueError: for an unknown period
    """
    now = now or datetime.utcnow()
    period_value = period.value if isinstance(period, PeriodType) else period
    if period_value == PeriodType.DAILY.value:
        return datetime(now.year, now.month, now.day)
    if period_value == PeriodType.MONTHLY.value:
        return datetime(now.year, now.month, 1)
    raise ValueError(f"Unknown period type: {period}")


class UsageTrackingService:
    """Record and read usage counters."""

    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def _track(self, user_id: str, usage_type: UsageType, period: PeriodType, amount: int = 1) -> None:
        await self.repos.usage.increment(
            user_id, usage_type.value, period.value, get_period_start(period), amount
        )

    async def track_ai_query(self, user_id: str) -> None:
        await self._track(user_id, UsageType.AI_QUERY, PeriodType.DAILY)
        await self._track(user_id, UsageType.AI_QUERY, PeriodType.MONTHLY)

    async def track_coach_message(self, user_id: str) -> None:
        await self._track(user_id, UsageType.COACH_MESSAGE, PeriodType.MONTHLY)

    async def track_client_message(self, coach_id: str) -> None:
        await self._track(coach_id, UsageType.CLIENT_MESSAGE, PeriodType.MONTHLY)

    async def track_research_report(self, user_id: str) -> None:
        await self._track(user_id, UsageType.RESEARCH_REPORT, PeriodType.MONTHLY)

    async def track_file_upload(self, user_id: str, file_size_bytes: int) -> None:
        await self._track(user_id, UsageType.FILE_UPLOAD, PeriodType.MONTHLY)
        if file_size_bytes:
            await self.repos.file_storage.add_bytes(user_id, file_size_bytes)

    async def adjust_file_storage(self, user_id: str, delta_bytes: int) -> None:
        """Change stored bytes without counting an upload (overwrite or delete)."""
        if delta_bytes:
            await self.repos.file_storage.add_bytes(user_id, delta_bytes)

    async def get_usage_count(self, user_id: str, usage_type: UsageType | str, period: PeriodType | str) -> int:
        usage_value = usage_type.value if isinstance(usage_type, UsageType) else usage_type
        period_value = period.value if isinstance(period, PeriodType) else period
        counter = await self.repos.usage.get_counter(
            user_id, usage_value, period_value, get_period_start(period_value)
        )
        return counter.count if counter else 0

    async def get_file_storage_usage(self, user_id: str) -> int:
        usage = await self.repos.file_storage.get_for_user(user_id)
        return usage.total_bytes if usage else 0

    @staticmethod
    def check_limit(current_usage: int, limit: int) -> bool:
        """True when another unit is allowed. Negative limits are unlimited."""
        if limit < 0:
            return True
        return current_usage < limit

    async def get_client_connection_count(self, coach_id: str) -> int:
        return await self.repos.connections.count_for_coach(coach_id)

"""
Feature gating.

Checks a user's current usage against the limits of their effective tier.
Limits come from ``settings.tier_limits``; a missing numeric limit means
unlimited and a missing ``Allow*`` flag means the feature is not included.
"""

from typing import Any, Dict, Optional, Tuple

from projectbrain.core.database.entities.subscriptions import UserType
from projectbrain.core.database.entities.usage import PeriodType, UsageType
from projectbrain.core.database.repositories import SqlRepoBundle
from projectbrain.core.logging_config import get_logger
from projectbrain.server.core.config import UNLIMITED, settings

from .subscriptions import SubscriptionService
from .usage_tracking import UsageTrackingService

logger = get_logger(__name__)

FeatureCheck = Tuple[bool, Optional[str]]


class FeatureGateService:
    """Decide whether a user may use a plan-limited feature."""

    def __init__(
        self,
        repos: SqlRepoBundle,
        subscriptions: Optional[SubscriptionService] = None,
        usage: Optional[UsageTrackingService] = None,
    ) -> None:
        self.repos = repos
        self.subscriptions = subscriptions or SubscriptionService(repos)
        self.usage = usage or UsageTrackingService(repos)

    @staticmethod
    def get_tier_limits(user_type: str, tier: str) -> Dict[str, Any]:
        return dict(settings.tier_limits.get(user_type.lower(), {}).get(tier, {}))

    @staticmethod
    def _limit(limits: Dict[str, Any], key: str) -> int:
        return int(limits.get(key, UNLIMITED))

    async def check_feature_access(self, user_id: str, user_type: str, feature: str) -> FeatureCheck:
        """Check one feature for the user.

        Args:
            user_id: The user to check
            user_type: ``user`` or ``coach``
            feature: Feature key, e.g. ``ai_queries`` or ``file_upload``

        Returns:
            ``(allowed, error_message)``; the message is None when allowed
        """
        tier = await self.subscriptions.get_user_tier(user_id, user_type)
        limits = self.get_tier_limits(user_type, tier)
        check = self.usage.check_limit

        if feature == "speech_input":
            if not limits.get("AllowSpeechInput", False):
                return False, (
                    "Speech input is only available in Pro and Ultimate tiers. Please upgrade to use this feature."
                )
            return True, None

        if feature == "external_integrations":
            if not limits.get("AllowExternalIntegrations", False):
                return False, (
                    "External integrations are only available in Ultimate tier. Please upgrade to use this feature."
                )
            return True, None

        if feature == "coach_connections":
            limit = self._limit(limits, "MaxCoachConnections")
            current = await self.repos.connections.count_for_user(user_id)
            if not check(current, limit):
                return False, (
                    f"You have reached the maximum of {limit} coach connections. "
                    "Please upgrade to connect with more coaches."
                )
            return True, None

        if feature == "coach_messages":
            limit = self._limit(limits, "MonthlyCoachMessages")
            current = await self.usage.get_usage_count(user_id, UsageType.COACH_MESSAGE, PeriodType.MONTHLY)
            if not check(current, limit):
                return False, (
                    f"You have reached your monthly limit of {limit} coach messages. "
                    "Please upgrade for unlimited messaging."
                )
            return True, None

        if feature == "research_reports":
            limit = self._limit(limits, "MonthlyResearchReports")
            current = await self.usage.get_usage_count(user_id, UsageType.RESEARCH_REPORT, PeriodType.MONTHLY)
            if not check(current, limit):
                return False, (
                    f"You have reached your monthly limit of {limit} research reports. "
                    "Please upgrade for more reports."
                )
            return True, None

        # file_replace overwrites an existing file, so only storage is checked
        if feature in ("file_upload", "file_replace"):
            if feature == "file_upload":
                max_files = self._limit(limits, "MaxFiles")
                file_count = await self.repos.resources.count_for_user(user_id)
                if not check(file_count, max_files):
                    return False, (
                        f"You have reached the maximum of {max_files} files. Please upgrade to upload more files."
                    )
            max_mb = self._limit(limits, "MaxFileStorageMB")
            if max_mb >= 0:
                used = await self.usage.get_file_storage_usage(user_id)
                if not check(used, max_mb * 1024 * 1024):
                    return False, (
                        f"You have reached your storage limit of {max_mb}MB. Please upgrade for more storage."
                    )
            return True, None

        if feature == "client_connections":
            limit = self._limit(limits, "MaxClientConnections")
            current = await self.usage.get_client_connection_count(user_id)
            if not check(current, limit):
                return False, (
                    f"You have reached the maximum of {limit} client connections. "
                    "Please upgrade to connect with more clients."
                )
            return True, None

        if feature == "client_messages":
            limit = self._limit(limits, "MonthlyClientMessages")
            current = await self.usage.get_usage_count(user_id, UsageType.CLIENT_MESSAGE, PeriodType.MONTHLY)
            if not check(current, limit):
                return False, (
                    f"You have reached your monthly limit of {limit} client messages. "
                    "Please upgrade for unlimited messaging."
                )
            return True, None

        if feature == "ai_queries":
            daily_limit = self._limit(limits, "DailyAIQueries")
            daily = await self.usage.get_usage_count(user_id, UsageType.AI_QUERY, PeriodType.DAILY)
            if not check(daily, daily_limit):
                return False, (
                    f"You have reached your daily limit of {daily_limit} AI queries. "
                    "Please upgrade or try again tomorrow."
                )
            monthly_limit = self._limit(limits, "MonthlyAIQueries")
            monthly = await self.usage.get_usage_count(user_id, UsageType.AI_QUERY, PeriodType.MONTHLY)
            if not check(monthly, monthly_limit):
                return False, (
                    f"You have reached your monthly limit of {monthly_limit} AI queries. "
                    "Please upgrade or try again next month."
                )
            return True, None

        logger.debug(f"No gate defined for feature '{feature}', allowing")
        return True, None

    async def can_use_feature(self, user_id: str, user_type: str, feature: str) -> bool:
        allowed, _ = await self.check_feature_access(user_id, user_type, feature)
        return allowed

    async def get_usage_summary(self, user_id: str, user_type: str = UserType.USER.value) -> Dict[str, Any]:
        """Current counters and limits, as returned by ``GET /subscriptions/usage``."""
        tier = await self.subscriptions.get_user_tier(user_id, user_type)
        return {
            "user_type": user_type,
            "tier": tier,
            "daily_ai_queries": await self.usage.get_usage_count(user_id, UsageType.AI_QUERY, PeriodType.DAILY),
            "monthly_ai_queries": await self.usage.get_usage_count(user_id, UsageType.AI_QUERY, PeriodType.MONTHLY),
            "monthly_coach_messages": await self.usage.get_usage_count(
                user_id, UsageType.COACH_MESSAGE, PeriodType.MONTHLY
            ),
            "monthly_client_messages": await self.usage.get_usage_count(
                user_id, UsageType.CLIENT_MESSAGE, PeriodType.MONTHLY
            ),
            "monthly_research_reports": await self.usage.get_usage_count(
                user_id, UsageType.RESEARCH_REPORT, PeriodType.MONTHLY
            ),
            "file_storage_bytes": await self.usage.get_file_storage_usage(user_id),
            "limits": self.get_tier_limits(user_type, tier),
        }

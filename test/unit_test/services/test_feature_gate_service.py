from datetime import datetime

import pytest

from projectbrain.core.database.entities.resources import Resource
from projectbrain.core.database.entities.usage import PeriodType, UsageType
from projectbrain.services.feature_gate import FeatureGateService
from projectbrain.services.subscriptions import SubscriptionService
from projectbrain.services.usage_tracking import UsageTrackingService, get_period_start


@pytest.fixture
def gate(repos):
    return FeatureGateService(repos)


class TestUsageTracking:
    def test_period_start(self):
        now = datetime(2025, 3, 17, 15, 42)

        assert get_period_start(PeriodType.DAILY, now) == datetime(2025, 3, 17)
        assert get_period_start("monthly", now) == datetime(2025, 3, 1)
        with pytest.raises(ValueError):
            get_period_start("weekly", now)

    def test_check_limit(self):
        assert UsageTrackingService.check_limit(4, 5) is True
        assert UsageTrackingService.check_limit(5, 5) is False
        assert UsageTrackingService.check_limit(10_000, -1) is True

    async def test_ai_queries_count_daily_and_monthly(self, repos, make_user):
        await make_user("alice")
        usage = UsageTrackingService(repos)

        await usage.track_ai_query("alice")
        await usage.track_ai_query("alice")

        assert await usage.get_usage_count("alice", UsageType.AI_QUERY, PeriodType.DAILY) == 2
        assert await usage.get_usage_count("alice", "ai_query", "monthly") == 2
        assert await usage.get_usage_count("alice", UsageType.COACH_MESSAGE, PeriodType.MONTHLY) == 0

    async def test_file_storage_never_goes_negative(self, repos, make_user):
        await make_user("alice")
        usage = UsageTrackingService(repos)

        await usage.track_file_upload("alice", 1000)
        await usage.adjust_file_storage("alice", -5000)

        assert await usage.get_file_storage_usage("alice") == 0
        assert await usage.get_usage_count("alice", UsageType.FILE_UPLOAD, PeriodType.MONTHLY) == 1


class TestFeatureGate:
    async def test_free_user_daily_ai_limit(self, gate, repos, make_user):
        await make_user("alice")
        await repos.usage.increment(
            "alice", UsageType.AI_QUERY.value, PeriodType.DAILY.value, get_period_start(PeriodType.DAILY), 50
        )

        allowed, error = await gate.check_feature_access("alice", "user", "ai_queries")

        assert allowed is False
        assert "daily limit of 50 AI queries" in error

    async def test_pro_user_is_unlimited(self, gate, repos, make_user):
        await make_user("alice")
        await SubscriptionService(repos).start_trial("alice", "user", "Pro")
        await repos.usage.increment(
            "alice", UsageType.AI_QUERY.value, PeriodType.DAILY.value, get_period_start(PeriodType.DAILY), 500
        )

        assert await gate.can_use_feature("alice", "user", "ai_queries") is True

    async def test_speech_and_integrations_flags(self, gate, repos, make_user):
        await make_user("alice")

        allowed, error = await gate.check_feature_access("alice", "user", "speech_input")
        assert allowed is False
        assert "Pro and Ultimate" in error

        await SubscriptionService(repos).start_trial("alice", "user", "Pro")
        assert await gate.can_use_feature("alice", "user", "speech_input") is True
        assert await gate.can_use_feature("alice", "user", "external_integrations") is False

    async def test_coach_connections_count_accepted_only(self, gate, make_user, make_connection):
        await make_user("alice")
        for i in range(4):
            await make_user(f"coach{i}", roles=["coach"])
        for i in range(3):
            await make_connection("alice", f"coach{i}")
        await make_connection("alice", "coach3", status="pending")

        allowed, error = await gate.check_feature_access("alice", "user", "coach_connections")

        assert allowed is False
        assert "maximum of 3 coach connections" in error

    async def test_free_coach_client_limits(self, gate, repos, make_user, make_connection):
        await make_user("coach", roles=["coach"])
        await make_user("client")
        await make_connection("client", "coach")
        assert await gate.can_use_feature("coach", "coach", "client_connections") is True

        usage = UsageTrackingService(repos)
        for _ in range(10):
            await usage.track_client_message("coach")

        allowed, error = await gate.check_feature_access("coach", "coach", "client_messages")
        assert allowed is False
        assert "10 client messages" in error

    async def test_file_upload_limits(self, gate, repos, make_user):
        await make_user("alice")
        await repos.file_storage.add_bytes("alice", 100 * 1024 * 1024)

        allowed, error = await gate.check_feature_access("alice", "user", "file_upload")
        assert allowed is False
        assert "storage limit of 100MB" in error

        await repos.file_storage.add_bytes("alice", -100 * 1024 * 1024)
        for i in range(20):
            await repos.resources.create(Resource(user_id="alice", file_name=f"f{i}.txt", location=f"alice/f{i}.txt"))
        allowed, error = await gate.check_feature_access("alice", "user", "file_upload")
        assert allowed is False
        assert "maximum of 20 files" in error
        assert await gate.check_feature_access("alice", "user", "file_replace") == (True, None)

    async def test_research_reports_blocked_on_free(self, gate, make_user):
        await make_user("alice")

        assert await gate.can_use_feature("alice", "user", "research_reports") is False

    async def test_unknown_feature_is_allowed(self, gate, make_user):
        await make_user("alice")

        assert await gate.check_feature_access("alice", "user", "teleportation") == (True, None)

    async def test_usage_summary(self, gate, repos, make_user):
        await make_user("alice")
        await UsageTrackingService(repos).track_ai_query("alice")

        summary = await gate.get_usage_summary("alice")

        assert summary["tier"] == "Free"
        assert summary["daily_ai_queries"] == 1
        assert summary["limits"]["MaxFiles"] == 20

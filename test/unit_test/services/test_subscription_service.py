from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from projectbrain.core.database.entities.subscriptions import UserSubscription
from projectbrain.core.errors import NotFoundException, ValidationException
from projectbrain.services.stripe_client import StripeClient
from projectbrain.services.subscriptions import SubscriptionAnalyticsService, SubscriptionService

PERIOD_START = 1_700_000_000
PERIOD_END = 1_702_592_000


@pytest.fixture
def stripe_client():
    client = AsyncMock(spec=StripeClient)
    client.create_customer.return_value = "cus_123"
    client.create_checkout_session.return_value = "https://checkout.stripe.test/session"
    return client


@pytest.fixture
def service(repos, stripe_client):
    return SubscriptionService(repos, stripe_client)


class TestTierResolution:
    async def test_defaults_to_free_without_subscription(self, service, make_user):
        await make_user("alice")

        assert await service.get_user_tier("alice", "user") == "Free"

    async def test_trial_grants_tier(self, service, make_user):
        await make_user("alice")

        subscription = await service.start_trial("alice", "user", "Pro")

        assert subscription.status == "trialing"
        assert subscription.trial_ends_at > datetime.utcnow()
        assert await service.get_user_tier("alice", "user") == "Pro"
        assert await service.get_user_tier("alice", "coach") == "Free"

    async def test_trial_rules(self, service, make_user):
        await make_user("alice")

        with pytest.raises(ValidationException):
            await service.start_trial("alice", "user", "Free")
        with pytest.raises(ValidationException):
            await service.start_trial("alice", "coach", "Ultimate")

        await service.start_trial("alice", "user", "Pro")
        with pytest.raises(ValidationException):
            await service.start_trial("alice", "user", "Ultimate")

    async def test_exclusion_forces_free(self, service, make_user):
        await make_user("alice")
        await service.start_trial("alice", "user", "Pro")

        await service.exclude_user("alice", "user", excluded_by="admin", reason="staff")
        assert await service.is_user_excluded("alice", "USER") is True
        assert await service.get_user_tier("alice", "user") == "Free"

        assert await service.remove_exclusion("alice", "user") is True
        assert await service.remove_exclusion("alice", "user") is False
        assert await service.get_user_tier("alice", "user") == "Pro"

    async def test_disabled_subscriptions_force_free(self, service, make_user):
        await make_user("alice")
        await service.start_trial("alice", "user", "Pro")

        settings_row = await service.update_subscription_settings(False, True, "admin")

        assert settings_row.updated_by == "admin"
        assert await service.is_subscription_required("user") is False
        assert await service.is_subscription_required("coach") is True
        assert await service.get_user_tier("alice", "user") == "Free"

    async def test_unknown_user_type(self, service):
        with pytest.raises(ValidationException):
            await service.get_user_tier("alice", "robot")

    async def test_get_tier_seeds_from_configured_limits(self, service, repos):
        tier = await service.get_tier("Pro", "coach")

        assert tier.features["MaxClientConnections"] == -1
        assert (await repos.subscription_tiers.get_by_name("Pro", "coach")).id == tier.id


class TestStripeLifecycle:
    async def test_checkout_creates_customer_once(self, service, stripe_client, repos, make_user):
        await make_user("alice")

        url = await service.create_checkout_session("alice", "user", "Pro", is_annual=False)
        await service.create_checkout_session("alice", "user", "Pro", is_annual=True)

        assert url == "https://checkout.stripe.test/session"
        stripe_client.create_customer.assert_awaited_once_with("alice", "alice@example.com", "Alice")
        placeholder = await repos.subscriptions.get_latest("alice", "user")
        assert placeholder.stripe_customer_id == "cus_123"
        assert placeholder.status == "incomplete"
        stripe_client.create_checkout_session.assert_awaited_with("alice", "user", "Pro", True, "cus_123")

    async def test_checkout_for_unknown_user(self, service):
        with pytest.raises(NotFoundException):
            await service.create_checkout_session("ghost", "user", "Pro", is_annual=False)

    async def test_update_from_stripe_matches_by_metadata(self, service, stripe_client, make_user):
        await make_user("alice")
        await service.create_checkout_session("alice", "user", "Pro", is_annual=False)
        stripe_client.get_subscription.return_value = {
            "id": "sub_1",
            "customer": "cus_123",
            "status": "active",
            "metadata": {"userId": "alice", "userType": "user", "tier": "Ultimate"},
            "items": {
                "data": [
                    {
                        "price": {"id": "price_ult"},
                        "current_period_start": PERIOD_START,
                        "current_period_end": PERIOD_END,
                    }
                ]
            },
        }

        saved = await service.update_subscription_from_stripe("sub_1")

        assert saved.stripe_subscription_id == "sub_1"
        assert saved.status == "active"
        assert saved.stripe_price_id == "price_ult"
        assert saved.current_period_end == datetime.fromtimestamp(PERIOD_END, tz=timezone.utc).replace(tzinfo=None)
        assert await service.get_user_tier("alice", "user") == "Ultimate"

    async def test_update_from_stripe_marks_cancellation(self, service, stripe_client, make_user):
        await make_user("alice")
        await service.create_checkout_session("alice", "user", "Pro", is_annual=False)
        stripe_client.get_subscription.return_value = {
            "id": "sub_1",
            "customer": "cus_123",
            "status": "canceled",
            "canceled_at": PERIOD_START,
            "metadata": {},
        }

        saved = await service.update_subscription_from_stripe("sub_1")

        assert saved.status == "canceled"
        assert saved.canceled_at == datetime.fromtimestamp(PERIOD_START, tz=timezone.utc).replace(tzinfo=None)

    async def test_update_from_stripe_unpaid_expires(self, service, stripe_client, make_user):
        await make_user("alice")
        await service.create_checkout_session("alice", "user", "Pro", is_annual=False)
        stripe_client.get_subscription.return_value = {
            "id": "sub_1",
            "customer": "cus_123",
            "status": "unpaid",
            "metadata": {"userId": "alice", "userType": "user", "tier": "Pro"},
        }

        saved = await service.update_subscription_from_stripe("sub_1")

        assert saved.status == "expired"
        assert saved.expired_at is not None
        assert await service.get_user_tier("alice", "user") == "Free"

    async def test_update_from_stripe_without_local_row(self, service, stripe_client):
        stripe_client.get_subscription.return_value = {"id": "sub_x", "status": "active", "metadata": {}}

        assert await service.update_subscription_from_stripe("sub_x") is None

    async def test_cancel_subscription(self, service, stripe_client, repos, make_user):
        await make_user("alice")
        with pytest.raises(NotFoundException):
            await service.cancel_subscription("alice", "user")

        tier = await service.get_tier("Pro", "user")
        await repos.subscriptions.create(
            UserSubscription(
                user_id="alice", user_type="user", tier_id=tier.id, status="active", stripe_subscription_id="sub_9"
            )
        )

        canceled = await service.cancel_subscription("alice", "user")

        stripe_client.cancel_subscription.assert_awaited_once_with("sub_9")
        assert canceled.status == "canceled"
        assert canceled.canceled_at is not None
        assert await service.get_user_tier("alice", "user") == "Free"


class TestSubscriptionAnalytics:
    async def test_summary_counts_paid_entitled_subscriptions(self, service, repos, make_user):
        for name in ("alice", "bob", "carol"):
            await make_user(name)
        await service.start_trial("alice", "user", "Pro")
        await service.start_trial("bob", "coach", "Pro")
        free = await service.get_tier("Free", "user")
        await repos.subscriptions.create(
            UserSubscription(user_id="carol", user_type="user", tier_id=free.id, status="active")
        )

        summary = await SubscriptionAnalyticsService(repos).summary()

        assert summary.paid_subscribers == 2
        assert summary.paid_users == 1
        assert summary.paid_coaches == 1
        assert summary.by_status == {"trialing": 2, "active": 1}
        assert summary.by_tier == {"Pro": 2, "Free": 1}

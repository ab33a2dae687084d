import pytest
import stripe

API = "/api/v1"
SUBSCRIPTIONS = f"{API}/subscriptions"
ADMIN = f"{API}/admin/subscriptions"


@pytest.fixture
async def alice(register):
    return await register("alice")


@pytest.fixture
async def admin(make_user):
    return await make_user("root", roles=["user", "admin"])


class TestSubscriptionsApi:
    @pytest.mark.asyncio
    async def test_defaults_to_free(self, client, alice, as_user):
        tier = await client.get(f"{SUBSCRIPTIONS}/tier", headers=as_user("alice"))
        mine = await client.get(f"{SUBSCRIPTIONS}/me", headers=as_user("alice"))

        assert tier.json() == {"user_type": "user", "tier": "Free"}
        assert mine.json()["error"]["code"] == "SUBSCRIPTION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_usage_reports_free_limits(self, client, alice, as_user):
        usage = (await client.get(f"{SUBSCRIPTIONS}/usage", headers=as_user("alice"))).json()

        assert usage["tier"] == "Free"
        assert usage["daily_ai_queries"] == 0
        assert usage["file_storage_bytes"] == 0
        assert usage["limits"]["DailyAIQueries"] == 50
        assert usage["limits"]["AllowSpeechInput"] is False

    @pytest.mark.asyncio
    async def test_checkout_creates_customer_once(self, client, alice, as_user, stripe_client):
        body = {"tier": "Pro", "is_annual": True}

        first = await client.post(f"{SUBSCRIPTIONS}/checkout", json=body, headers=as_user("alice"))
        await client.post(f"{SUBSCRIPTIONS}/checkout", json=body, headers=as_user("alice"))

        assert first.json() == {"checkout_url": "https://checkout.stripe.test/c/1"}
        stripe_client.create_customer.assert_awaited_once_with("alice", "alice@example.com", "Alice")
        stripe_client.create_checkout_session.assert_awaited_with("alice", "user", "Pro", True, "cus_test")
        placeholder = (await client.get(f"{SUBSCRIPTIONS}/me", headers=as_user("alice"))).json()
        assert placeholder["status"] == "incomplete"
        assert placeholder["stripe_customer_id"] == "cus_test"

    @pytest.mark.asyncio
    async def test_checkout_rejects_unknown_tier(self, client, alice, as_user, stripe_client):
        response = await client.post(f"{SUBSCRIPTIONS}/checkout", json={"tier": "Gold"}, headers=as_user("alice"))

        assert response.status_code == 400
        stripe_client.create_customer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_trial_then_cancel(self, client, alice, as_user, stripe_client):
        headers = as_user("alice")

        trial = await client.post(f"{SUBSCRIPTIONS}/trial", json={"tier": "Pro"}, headers=headers)
        assert trial.json()["status"] == "trialing"
        assert trial.json()["trial_ends_at"] is not None
        assert (await client.get(f"{SUBSCRIPTIONS}/tier", headers=headers)).json()["tier"] == "Pro"

        again = await client.post(f"{SUBSCRIPTIONS}/trial", json={"tier": "Ultimate"}, headers=headers)
        assert again.status_code == 400

        canceled = await client.post(f"{SUBSCRIPTIONS}/cancel", headers=headers)
        assert canceled.json()["status"] == "canceled"
        assert canceled.json()["canceled_at"] is not None
        stripe_client.cancel_subscription.assert_not_awaited()
        assert (await client.get(f"{SUBSCRIPTIONS}/tier", headers=headers)).json()["tier"] == "Free"

    @pytest.mark.asyncio
    async def test_free_trial_is_rejected(self, client, alice, as_user):
        response = await client.post(f"{SUBSCRIPTIONS}/trial", json={"tier": "Free"}, headers=as_user("alice"))

        assert response.status_code == 400


class TestStripeWebhook:
    @pytest.mark.asyncio
    async def test_subscription_event_syncs_local_row(self, client, alice, as_user, stripe_client):
        await client.post(f"{SUBSCRIPTIONS}/checkout", json={"tier": "Ultimate"}, headers=as_user("alice"))
        stripe_client.construct_event.return_value = {
            "type": "customer.subscription.updated",
            "data": {"object": {"id": "sub_1"}},
        }
        stripe_client.get_subscription.return_value = {
            "id": "sub_1",
            "customer": "cus_test",
            "status": "active",
            "metadata": {"userId": "alice", "userType": "user", "tier": "Ultimate"},
            "items": {"data": [{"price": {"id": "price_ult"}, "current_period_start": 1_750_000_000,
                                "current_period_end": 1_752_592_000}]},
        }

        response = await client.post(
            f"{API}/webhooks/stripe", content=b"{}", headers={"Stripe-Signature": "t=1,v1=abc"}
        )

        assert response.json() == {"received": True}
        stripe_client.construct_event.assert_called_once_with(b"{}", "t=1,v1=abc")
        stripe_client.get_subscription.assert_awaited_once_with("sub_1")
        mine = (await client.get(f"{SUBSCRIPTIONS}/me", headers=as_user("alice"))).json()
        assert mine["status"] == "active"
        assert mine["stripe_subscription_id"] == "sub_1"
        assert (await client.get(f"{SUBSCRIPTIONS}/tier", headers=as_user("alice"))).json()["tier"] == "Ultimate"

    @pytest.mark.asyncio
    async def test_invoice_event_uses_parent_subscription(self, client, stripe_client):
        stripe_client.construct_event.return_value = {
            "type": "invoice.payment_failed",
            "data": {"object": {"parent": {"subscription_details": {"subscription": "sub_9"}}}},
        }
        stripe_client.get_subscription.return_value = {"id": "sub_9", "status": "past_due"}

        response = await client.post(f"{API}/webhooks/stripe", content=b"{}")

        assert response.status_code == 200
        stripe_client.get_subscription.assert_awaited_once_with("sub_9")

    @pytest.mark.asyncio
    async def test_other_events_are_acknowledged(self, client, stripe_client):
        stripe_client.construct_event.return_value = {"type": "charge.refunded", "data": {"object": {}}}

        response = await client.post(f"{API}/webhooks/stripe", content=b"{}")

        assert response.json() == {"received": True}
        stripe_client.get_subscription.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bad_signature(self, client, stripe_client):
        stripe_client.construct_event.side_effect = stripe.SignatureVerificationError("bad signature", "t=1")

        response = await client.post(f"{API}/webhooks/stripe", content=b"{}", headers={"Stripe-Signature": "t=1"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_WEBHOOK"


class TestAdminSubscriptionsApi:
    @pytest.mark.asyncio
    async def test_requires_admin(self, client, alice, as_user):
        response = await client.get(f"{ADMIN}/settings", headers=as_user("alice"))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_disabling_user_subscriptions_forces_free(self, client, admin, alice, as_user):
        await client.post(f"{SUBSCRIPTIONS}/trial", json={"tier": "Pro"}, headers=as_user("alice"))

        updated = await client.put(
            f"{ADMIN}/settings",
            json={"enable_user_subscriptions": False, "enable_coach_subscriptions": True},
            headers=as_user("root"),
        )

        assert updated.json()["updated_by"] == "root"
        assert (await client.get(f"{SUBSCRIPTIONS}/tier", headers=as_user("alice"))).json()["tier"] == "Free"

    @pytest.mark.asyncio
    async def test_exclusions(self, client, admin, alice, as_user):
        headers = as_user("root")
        await client.post(f"{SUBSCRIPTIONS}/trial", json={"tier": "Pro"}, headers=as_user("alice"))

        created = await client.post(
            f"{ADMIN}/exclusions", json={"user_id": "alice", "reason": "Staff"}, headers=headers
        )
        assert created.status_code == 201
        assert created.json()["excluded_by"] == "root"
        assert (await client.get(f"{SUBSCRIPTIONS}/tier", headers=as_user("alice"))).json()["tier"] == "Free"
        assert [e["user_id"] for e in (await client.get(f"{ADMIN}/exclusions", headers=headers)).json()] == ["alice"]

        assert (await client.delete(f"{ADMIN}/exclusions/alice", headers=headers)).status_code == 204
        assert (await client.delete(f"{ADMIN}/exclusions/alice", headers=headers)).status_code == 404
        assert (await client.get(f"{SUBSCRIPTIONS}/tier", headers=as_user("alice"))).json()["tier"] == "Pro"

    @pytest.mark.asyncio
    async def test_listing_and_analytics(self, client, admin, alice, register, as_user):
        await register("coach")
        await client.post(f"{SUBSCRIPTIONS}/trial", json={"tier": "Pro"}, headers=as_user("alice"))
        await client.post(
            f"{SUBSCRIPTIONS}/trial", json={"user_type": "coach", "tier": "Pro"}, headers=as_user("coach")
        )
        headers = as_user("root")

        listed = await client.get(f"{ADMIN}/all", headers=headers)
        one = await client.get(f"{ADMIN}/user/coach", params={"user_type": "coach"}, headers=headers)
        analytics = (await client.get(f"{ADMIN}/analytics", headers=headers)).json()

        assert len(listed.json()) == 2
        assert one.json()["user_type"] == "coach"
        assert analytics["paid_subscribers"] == 2
        assert analytics["paid_users"] == 1
        assert analytics["paid_coaches"] == 1
        assert analytics["by_status"] == {"trialing": 2}
        assert analytics["by_tier"] == {"Pro": 2}

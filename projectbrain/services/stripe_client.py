"""
Stripe client wrapper.

Thin async facade over the ``stripe`` SDK. Blocking SDK calls run in a
worker thread.
"""

import asyncio
from typing import Any, Dict, Optional

import stripe

from projectbrain.core.errors import AppException
from projectbrain.core.logging_config import get_logger
from projectbrain.server.core.config import StripeConfig

logger = get_logger(__name__)


def price_key(user_type: str, tier: str, is_annual: bool) -> str:
    """Config key for a price id, e.g. ``User_Pro_Monthly``."""
    return f"{user_type.capitalize()}_{tier}_{'Annual' if is_annual else 'Monthly'}"


class StripeClient:
    """Stripe operations used by the subscription service."""

    def __init__(self, config: StripeConfig) -> None:
        self.config = config

    def _require_key(self) -> str:
        if not self.config.secret_key:
            raise AppException("STRIPE_NOT_CONFIGURED", "Stripe secret key is not configured", status_code=503)
        return self.config.secret_key

    async def create_customer(self, user_id: str, email: str, name: Optional[str] = None) -> str:
        """Create a Stripe customer and return its id."""
        api_key = self._require_key()
        customer = await asyncio.to_thread(
            stripe.Customer.create,
            api_key=api_key,
            email=email,
            name=name or None,
            metadata={"userId": user_id},
        )
        logger.info(f"Created Stripe customer {customer.id} for user {user_id}")
        return customer.id

    async def create_checkout_session(
        self,
        user_id: str,
        user_type: str,
        tier: str,
        is_annual: bool,
        customer_id: str,
    ) -> str:
        """Create a subscription checkout session and return its URL.

        Args:
            user_id: Local user id, stored in metadata
            user_type: "user" or "coach"
            tier: Tier name
            is_annual: Annual instead of monthly billing
            customer_id: Stripe customer id

        Returns:
            Hosted checkout URL

        Raises:
            AppException: PRICE_NOT_CONFIGURED when no price id exists for the plan
        """
        api_key = self._require_key()
        key = price_key(user_type, tier, is_annual)
        price_id = self.config.price_ids.get(key)
        if not price_id:
            raise AppException("PRICE_NOT_CONFIGURED", f"Price ID not found for {key}", status_code=400)

        metadata = {"userId": user_id, "userType": user_type, "tier": tier}
        subscription_data: Dict[str, Any] = {"metadata": metadata}
        if tier == "Pro":
            subscription_data["trial_period_days"] = self.config.trial_days

        session = await asyncio.to_thread(
            stripe.checkout.Session.create,
            api_key=api_key,
            customer=customer_id,
            mode="subscription",
            payment_method_types=["card"],
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=self.config.success_url,
            cancel_url=self.config.cancel_url,
            metadata=metadata,
            subscription_data=subscription_data,
        )
        logger.info(f"Created checkout session {session.id} for user {user_id} ({key})")
        return session.url

    async def get_subscription(self, subscription_id: str) -> Dict[str, Any]:
        api_key = self._require_key()
        subscription = await asyncio.to_thread(stripe.Subscription.retrieve, subscription_id, api_key=api_key)
        return subscription.to_dict()

    async def cancel_subscription(self, subscription_id: str) -> None:
        api_key = self._require_key()
        await asyncio.to_thread(stripe.Subscription.cancel, subscription_id, api_key=api_key)
        logger.info(f"Canceled Stripe subscription {subscription_id}")

    def construct_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """Verify a webhook payload and return the event as a dict.

        Raises:
            ValueError: payload is not valid JSON
            stripe.SignatureVerificationError: signature mismatch
        """
        if not self.config.webhook_secret:
            raise AppException("WEBHOOK_NOT_CONFIGURED", "Webhook secret not configured", status_code=400)
        event = stripe.Webhook.construct_event(payload, signature, self.config.webhook_secret)
        return event.to_dict()

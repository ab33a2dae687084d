"""
Stripe webhook endpoint.

Verifies the Stripe signature and re-syncs the affected subscription from
Stripe for subscription and invoice events.
"""

from typing import Any, Dict, Optional

import stripe
from fastapi import APIRouter, Header, Request

from projectbrain.core.errors import AppException
from projectbrain.core.logging_config import get_logger
from projectbrain.core.monitoring import log_stripe_event
from projectbrain.server.services.deps import StripeClientDep, SubscriptionServiceDep

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])

SUBSCRIPTION_EVENTS = {
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
}
INVOICE_EVENTS = {"invoice.payment_succeeded", "invoice.payment_failed"}


def invoice_subscription_id(invoice: Dict[str, Any]) -> Optional[str]:
    """Subscription id of an invoice, across old and new Stripe API shapes."""
    subscription = invoice.get("subscription")
    if isinstance(subscription, dict):
        return subscription.get("id")
    if subscription:
        return subscription
    details = ((invoice.get("parent") or {}).get("subscription_details")) or {}
    return details.get("subscription")


@router.post(
    "/stripe",
    summary="Stripe Webhook",
    description="Receive Stripe events. Subscription and invoice events re-sync the local subscription.",
    responses={400: {"description": "Webhook not configured or signature invalid"}},
)
async def stripe_webhook(
    request: Request,
    stripe_client: StripeClientDep,
    subscriptions: SubscriptionServiceDep,
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
):
    """
    Handle a Stripe webhook.

    Unhandled event types are acknowledged so that Stripe does not retry them.
    """
    payload = await request.body()
    try:
        event = stripe_client.construct_event(payload, stripe_signature or "")
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning(f"Rejected Stripe webhook: {e}")
        raise AppException("INVALID_WEBHOOK", "Invalid Stripe webhook payload or signature") from e

    event_type = event.get("type", "")
    data = (event.get("data") or {}).get("object") or {}

    subscription_id: Optional[str] = None
    if event_type in SUBSCRIPTION_EVENTS:
        subscription_id = data.get("id")
    elif event_type in INVOICE_EVENTS:
        subscription_id = invoice_subscription_id(data)
    else:
        logger.info(f"Ignoring Stripe event {event_type}")
        return {"received": True}

    if subscription_id:
        await subscriptions.update_subscription_from_stripe(subscription_id)
        log_stripe_event(event_type, subscription_id)
    else:
        logger.info(f"Stripe event {event_type} has no subscription attached")
    return {"received": True}

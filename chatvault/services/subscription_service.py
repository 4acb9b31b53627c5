"""
Subscription service

Bridges local subscription rows and Stripe: customer creation, checkout
sessions, cancellation and webhook-driven state updates. Webhook events
are the only writer of status, plan and billing period.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union
import json
import logging

import stripe
from sqlalchemy.orm import Session

from chatvault.config import settings
from chatvault.models import Subscription, User
from chatvault.utils.retry import retry_on_stripe_error
from chatvault.core.exceptions import (
    http_400_bad_request,
    http_404_not_found,
    http_500_not_configured,
)

logger = logging.getLogger(__name__)

FREE_PLAN = {"status": "free", "plan_id": "free"}

SUBSCRIPTION_CHANGE_EVENTS = ("customer.subscription.created", "customer.subscription.updated")
SUBSCRIPTION_DELETED_EVENT = "customer.subscription.deleted"


def _timestamp(value: Optional[int]) -> Optional[datetime]:
    """Stripe epoch seconds -> aware datetime"""
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def plan_for_price(price_id: Optional[str]) -> str:
    """Internal plan name for a Stripe price id ("free" when unknown)"""
    return settings.STRIPE_PRICE_PLANS.get(price_id or "", "free")


class StripeGateway:
    """Thin wrapper over the Stripe SDK calls we make, with retries"""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key or settings.STRIPE_SECRET_KEY
        if not self.api_key:
            raise http_500_not_configured("Stripe")

    @retry_on_stripe_error()
    def create_customer(self, email: str, user_id: str):
        return stripe.Customer.create(
            email=email,
            metadata={"userId": user_id},
            api_key=self.api_key,
        )

    @retry_on_stripe_error()
    def create_checkout_session(self, customer_id: str, price_id: str, user_id: str):
        frontend_url = settings.FRONTEND_URL.rstrip("/")
        return stripe.checkout.Session.create(
            customer=customer_id,
            payment_method_types=["card"],
            line_items=[{"price": price_id, "quantity": 1}],
            mode="subscription",
            success_url=f"{frontend_url}/dashboard?success=true",
            cancel_url=f"{frontend_url}/dashboard?canceled=true",
            metadata={"userId": user_id},
            subscription_data={"metadata": {"userId": user_id}},
            api_key=self.api_key,
        )

    @retry_on_stripe_error()
    def cancel_at_period_end(self, subscription_id: str):
        return stripe.Subscription.modify(
            subscription_id,
            cancel_at_period_end=True,
            api_key=self.api_key,
        )


class SubscriptionService:
    """Subscription state for one database session"""

    def __init__(self, db: Session, gateway: Optional[StripeGateway] = None):
        self.db = db
        self._gateway = gateway

    @property
    def gateway(self) -> StripeGateway:
        # Created on first use so read-only endpoints work without Stripe keys
        if self._gateway is None:
            self._gateway = StripeGateway()
        return self._gateway

    def _find_for_user(self, user_id: str) -> Optional[Subscription]:
        return self.db.query(Subscription).filter(Subscription.user_id == user_id).first()

    def get_subscription(self, user_id: str) -> Union[Subscription, Dict[str, Any]]:
        """
        Current subscription of a user

        Returns:
            Subscription row, or {"status": "free", "plan_id": "free"} without one
        """
        subscription = self._find_for_user(user_id)
        return subscription if subscription else dict(FREE_PLAN)

    def ensure_customer(self, user_id: str, email: str) -> Subscription:
        """
        Local subscription row with a Stripe customer, created on first use

        Raises:
            HTTPException: 500 if Stripe is not configured
        """
        subscription = self._find_for_user(user_id)
        if subscription and subscription.stripe_customer_id:
            return subscription

        customer = self.gateway.create_customer(email=email, user_id=user_id)

        if subscription is None:
            subscription = Subscription(user_id=user_id, status="incomplete", plan_id="free")
            self.db.add(subscription)

        subscription.stripe_customer_id = customer.id
        self.db.commit()
        self.db.refresh(subscription)

        logger.info(f"Created Stripe customer {customer.id} for user {user_id}")
        return subscription

    def create_checkout_session(self, user_id: str, email: str, price_id: str) -> Dict[str, Any]:
        """
        Start a hosted checkout for a price

        Returns:
            dict: {"session_id", "url"}

        Raises:
            HTTPException: 500 if Stripe is not configured
        """
        subscription = self.ensure_customer(user_id, email)
        session = self.gateway.create_checkout_session(
            customer_id=subscription.stripe_customer_id,
            price_id=price_id,
            user_id=user_id,
        )

        logger.info(f"Created checkout session {session.id} for user {user_id} (price {price_id})")
        return {"session_id": session.id, "url": getattr(session, "url", None)}

    def cancel(self, user_id: str) -> Subscription:
        """
        Cancel the user's subscription at the end of the current period

        Raises:
            HTTPException: 500 if Stripe is not configured
            HTTPException: 404 if there is no provider subscription
        """
        gateway = self.gateway
        subscription = self._find_for_user(user_id)

        if not subscription or not subscription.stripe_subscription_id:
            raise http_404_not_found("No active subscription found")

        gateway.cancel_at_period_end(subscription.stripe_subscription_id)

        subscription.cancel_at_period_end = True
        self.db.commit()
        self.db.refresh(subscription)

        logger.info(f"Subscription {subscription.stripe_subscription_id} of user {user_id} set to cancel at period end")
        return subscription

    def handle_webhook(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify and apply a Stripe webhook event

        Args:
            payload: Raw request body (must be unparsed for verification)
            signature: Stripe-Signature header

        Returns:
            dict: {"received": True}

        Raises:
            HTTPException: 500 if the webhook secret is not configured
            HTTPException: 400 if the signature or payload is invalid
        """
        if not settings.STRIPE_WEBHOOK_SECRET:
            raise http_500_not_configured("Stripe")

        if not signature:
            logger.warning("Webhook rejected: missing Stripe-Signature header")
            raise http_400_bad_request("Webhook Error: Missing signature")

        try:
            stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Webhook signature verification failed: {e}")
            raise http_400_bad_request(f"Webhook Error: {e}")
        except ValueError as e:
            logger.warning(f"Webhook payload invalid: {e}")
            raise http_400_bad_request("Webhook Error: Invalid payload")

        # Signature is valid; work on plain dicts from here on
        event = json.loads(payload)
        event_type = event.get("type")
        data_object = (event.get("data") or {}).get("object") or {}

        if event_type in SUBSCRIPTION_CHANGE_EVENTS:
            self._apply_subscription_change(data_object)
        elif event_type == SUBSCRIPTION_DELETED_EVENT:
            self._apply_subscription_deletion(data_object)
        else:
            logger.info(f"Unhandled event type {event_type}")

        return {"received": True}

    def _apply_subscription_change(self, stripe_subscription: Dict[str, Any]) -> None:
        customer_id = stripe_subscription.get("customer")
        if not customer_id:
            logger.warning(f"Ignoring subscription {stripe_subscription.get('id')}: event has no customer")
            return

        items = (stripe_subscription.get("items") or {}).get("data") or []
        first_item = items[0] if items else {}
        price_id = (first_item.get("price") or {}).get("id")

        subscription = self.db.query(Subscription).filter(
            Subscription.stripe_customer_id == customer_id
        ).first()

        if subscription is None:
            user_id = (stripe_subscription.get("metadata") or {}).get("userId")
            user = self.db.query(User).filter(User.id == user_id).first() if user_id else None

            if user is None:
                logger.warning(
                    f"Ignoring subscription {stripe_subscription.get('id')}: "
                    f"no local user for customer {customer_id}"
                )
                return

            subscription = self._find_for_user(user.id)
            if subscription is None:
                subscription = Subscription(user_id=user.id)
                self.db.add(subscription)
            subscription.stripe_customer_id = customer_id

        # Newer API versions report the billing period on the subscription item
        period_start = stripe_subscription.get("current_period_start") or first_item.get("current_period_start")
        period_end = stripe_subscription.get("current_period_end") or first_item.get("current_period_end")

        subscription.stripe_subscription_id = stripe_subscription.get("id")
        subscription.status = stripe_subscription.get("status") or subscription.status
        subscription.plan_id = plan_for_price(price_id)
        subscription.current_period_start = _timestamp(period_start)
        subscription.current_period_end = _timestamp(period_end)
        subscription.cancel_at_period_end = bool(stripe_subscription.get("cancel_at_period_end"))

        self.db.commit()
        logger.info(
            f"Subscription {subscription.stripe_subscription_id} for user {subscription.user_id}: "
            f"status={subscription.status}, plan={subscription.plan_id}"
        )

    def _apply_subscription_deletion(self, stripe_subscription: Dict[str, Any]) -> None:
        customer_id = stripe_subscription.get("customer")
        if not customer_id:
            logger.warning(f"Ignoring deleted subscription {stripe_subscription.get('id')}: event has no customer")
            return

        subscription = self.db.query(Subscription).filter(
            Subscription.stripe_customer_id == customer_id
        ).first()

        if subscription is None:
            logger.warning(f"Deleted subscription for unknown customer {customer_id}, ignoring")
            return

        subscription.status = "canceled"
        subscription.cancel_at_period_end = True
        self.db.commit()
        logger.info(f"Subscription {subscription.stripe_subscription_id} of user {subscription.user_id} canceled")

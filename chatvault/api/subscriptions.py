"""
Subscription API endpoints
Plan status, Stripe checkout, cancellation and the Stripe webhook
"""

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session
from typing import Optional
import logging

from chatvault.database import get_db
from chatvault.api.deps import require_user
from chatvault.schemas.user import CurrentUser
from chatvault.schemas.chat import MessageResponse
from chatvault.schemas.subscription import (
    SubscriptionResponse,
    CheckoutSessionRequest,
    CheckoutSessionResponse,
)
from chatvault.services.subscription_service import SubscriptionService

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])
logger = logging.getLogger(__name__)


@router.get("", response_model=SubscriptionResponse)
async def get_subscription(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_user)
):
    """
    Get the caller's subscription

    Returns:
        SubscriptionResponse: Stored subscription, or status/planId "free"
    """
    return SubscriptionService(db).get_subscription(current_user.id)


@router.post("", response_model=SubscriptionResponse)
async def create_subscription(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_user)
):
    """
    Make sure the caller has a Stripe customer and a subscription record

    Raises:
        HTTPException: 500 if Stripe is not configured
    """
    return SubscriptionService(db).ensure_customer(current_user.id, current_user.email)


@router.post("/create-checkout-session", response_model=CheckoutSessionResponse)
async def create_checkout_session(
    checkout: CheckoutSessionRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_user)
):
    """
    Start a Stripe checkout for a price

    Args:
        checkout: priceId to subscribe to
        db: Database session
        current_user: Authenticated user

    Returns:
        CheckoutSessionResponse: sessionId and hosted checkout url

    Raises:
        HTTPException: 500 if Stripe is not configured
    """
    return SubscriptionService(db).create_checkout_session(
        current_user.id,
        current_user.email,
        checkout.price_id,
    )


@router.post("/cancel", response_model=MessageResponse)
async def cancel_subscription(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_user)
):
    """
    Cancel the caller's subscription at the end of the billing period

    Raises:
        HTTPException: 500 if Stripe is not configured
        HTTPException: 404 if there is no active subscription
    """
    SubscriptionService(db).cancel(current_user.id)
    return MessageResponse(message="Subscription will be canceled at the end of the current period")


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
    db: Session = Depends(get_db)
):
    """
    Stripe webhook receiver (no user authentication)

    The raw body is verified against the Stripe-Signature header before
    any state changes.

    Raises:
        HTTPException: 400 if the signature is invalid
        HTTPException: 500 if the webhook secret is not configured
    """
    payload = await request.body()
    return SubscriptionService(db).handle_webhook(payload, stripe_signature)

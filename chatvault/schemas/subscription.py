"""
Pydantic Schemas for subscription endpoints
"""

from pydantic import Field, field_validator
from typing import Optional
from datetime import datetime
from uuid import UUID

from chatvault.schemas.base import CamelModel


class SubscriptionResponse(CamelModel):
    """Local subscription state ("free" when no row exists)"""
    id: Optional[UUID] = None
    user_id: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    plan_id: str = "free"
    status: str = "free"
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CheckoutSessionRequest(CamelModel):
    price_id: str = Field(..., min_length=1, description="Stripe price id")

    @field_validator("price_id")
    @classmethod
    def price_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Price ID is required")
        return value.strip()


class CheckoutSessionResponse(CamelModel):
    session_id: str
    url: Optional[str] = None

"""
Subscription Model - Stripe subscription state mirrored from webhooks
"""

from sqlalchemy import Column, String, Boolean, ForeignKey, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from chatvault.database import Base


class Subscription(Base):
    """
    Subscription model - one row per user

    Attributes:
        stripe_customer_id: Stripe customer (created lazily on first checkout)
        stripe_subscription_id: Stripe subscription, set by webhook events
        plan_id: Internal plan name mapped from the Stripe price id
        status: Stripe subscription status (incomplete, active, canceled, ...)
        current_period_start, current_period_end: Billing period bounds
        cancel_at_period_end: Subscription ends with the current period
    """

    __tablename__ = "subscriptions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    stripe_customer_id = Column(String(255), unique=True, index=True)
    stripe_subscription_id = Column(String(255), unique=True)
    plan_id = Column(String(50), nullable=False, default="free")
    status = Column(String(50), nullable=False, default="incomplete")
    current_period_start = Column(DateTime(timezone=True))
    current_period_end = Column(DateTime(timezone=True))
    cancel_at_period_end = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="subscription")

    def __repr__(self):
        return f"<Subscription(id={self.id}, user_id={self.user_id}, status={self.status})>"

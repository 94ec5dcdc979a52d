"""Pydantic schemas for dashboard and subscription endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SubscribeRequest(BaseModel):
    """Request schema for subscribing or replacing the payment method."""

    model_config = ConfigDict(populate_by_name=True)

    stripe_token: Optional[str] = Field(None, alias="stripeToken", description="Stripe.js card token")


class SubscriptionInfo(BaseModel):
    plan: str
    status: str
    trial_end: Optional[datetime]
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False


class PaymentSourceInfo(BaseModel):
    brand: str
    last_four: str


class DashboardResponse(BaseModel):
    """Presentation-ready account snapshot."""

    email: str
    tracking_id: str
    subscription: SubscriptionInfo
    payment_source: Optional[PaymentSourceInfo] = None
    display_subscription: bool
    stripe_public_key: str
    analytics_token: str
    action: Optional[str] = None
    ref: str = ""

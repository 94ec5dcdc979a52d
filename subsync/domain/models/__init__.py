"""Domain models for the subscription sync service."""

from .account import Account
from .billing import Customer, PaymentSource, Subscription, SubscriptionStatus
from .tracking import TrackingEvent
from .webhook import (
    CustomerUpserted,
    SubscriptionChanged,
    Unrecognized,
    WebhookEvent,
    parse_webhook_event,
)

__all__ = [
    "Account",
    "Customer",
    "CustomerUpserted",
    "PaymentSource",
    "Subscription",
    "SubscriptionChanged",
    "SubscriptionStatus",
    "TrackingEvent",
    "Unrecognized",
    "WebhookEvent",
    "parse_webhook_event",
]

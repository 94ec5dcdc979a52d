"""Provider webhook envelopes, resolved once into a closed set of variants."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Union

CUSTOMER_EVENT_TYPES = frozenset({"customer.created", "customer.updated"})
SUBSCRIPTION_EVENT_TYPES = frozenset(
    {
        "customer.subscription.created",
        "customer.subscription.updated",
        "customer.subscription.deleted",
    }
)


@dataclass(frozen=True, slots=True)
class CustomerUpserted:
    """The payload is the full customer object."""

    event_type: str
    customer: Dict[str, Any]


@dataclass(frozen=True, slots=True)
class SubscriptionChanged:
    """The customer must be fetched; the payload is the subscription as of the event."""

    event_type: str
    customer_id: str
    subscription: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Unrecognized:
    event_type: str


WebhookEvent = Union[CustomerUpserted, SubscriptionChanged, Unrecognized]


def parse_webhook_event(envelope: Dict[str, Any]) -> WebhookEvent:
    """
    Classify a decoded webhook envelope.

    Args:
        envelope: Decoded event body with ``type`` and ``data.object`` keys

    Returns:
        One of ``CustomerUpserted``, ``SubscriptionChanged`` or ``Unrecognized``.
        Recognized types whose payload lacks the fields we need are treated as
        unrecognized so the endpoint never fails on them.
    """
    event_type = str(envelope.get("type") or "")
    data = envelope.get("data") or {}
    payload = data.get("object") if isinstance(data, dict) else None
    if not isinstance(payload, dict):
        return Unrecognized(event_type)

    if event_type in CUSTOMER_EVENT_TYPES and payload.get("id"):
        return CustomerUpserted(event_type, payload)

    if event_type in SUBSCRIPTION_EVENT_TYPES:
        customer = payload.get("customer")
        # Expanded payloads carry the customer object instead of its ID.
        if isinstance(customer, dict):
            customer = customer.get("id")
        if customer:
            return SubscriptionChanged(event_type, str(customer), payload)

    return Unrecognized(event_type)

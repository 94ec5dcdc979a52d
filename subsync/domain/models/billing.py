"""Provider-owned billing objects mirrored locally on an account."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class SubscriptionStatus:
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    UNPAID = "unpaid"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"

    # Statuses that mean the customer has paid for (or is paying for) the plan.
    PAID = frozenset({ACTIVE, PAST_DUE})


def _timestamp(value: Optional[datetime]) -> Optional[int]:
    return int(value.timestamp()) if value else None


def _from_timestamp(value: Optional[int]) -> Optional[datetime]:
    return datetime.fromtimestamp(value, tz=timezone.utc) if value else None


@dataclass(slots=True)
class PaymentSource:
    id: str
    brand: str
    last_four: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "brand": self.brand, "last_four": self.last_four}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaymentSource":
        return cls(id=data["id"], brand=data.get("brand", ""), last_four=data.get("last_four", ""))


@dataclass(slots=True)
class Subscription:
    """
    A provider subscription as last reported by the provider.

    Attributes:
        id: Provider subscription ID
        customer_id: Provider ID of the owning customer
        plan: Plan identifier the subscription is billed on
        status: Provider status string, see ``SubscriptionStatus``
        trial_end: End of the trial period, if any
        current_period_end: End of the current billing period, if known
        cancel_at_period_end: Whether the provider will cancel at period end
    """

    id: str
    customer_id: str
    plan: str
    status: str
    trial_end: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False

    def is_active(self) -> bool:
        return self.status in SubscriptionStatus.PAID

    def is_canceled(self) -> bool:
        return self.status == SubscriptionStatus.CANCELED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "plan": self.plan,
            "status": self.status,
            "trial_end": _timestamp(self.trial_end),
            "current_period_end": _timestamp(self.current_period_end),
            "cancel_at_period_end": self.cancel_at_period_end,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Subscription":
        return cls(
            id=data["id"],
            customer_id=data["customer_id"],
            plan=data.get("plan", ""),
            status=data["status"],
            trial_end=_from_timestamp(data.get("trial_end")),
            current_period_end=_from_timestamp(data.get("current_period_end")),
            cancel_at_period_end=bool(data.get("cancel_at_period_end", False)),
        )


@dataclass(slots=True)
class Customer:
    id: str
    email: str
    sources: List[PaymentSource] = field(default_factory=list)
    subscriptions: List[Subscription] = field(default_factory=list)

    @property
    def subscription(self) -> Optional[Subscription]:
        return self.subscriptions[0] if self.subscriptions else None

    @property
    def payment_source(self) -> Optional[PaymentSource]:
        return self.sources[0] if self.sources else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "sources": [source.to_dict() for source in self.sources],
            "subscriptions": [sub.to_dict() for sub in self.subscriptions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Customer":
        return cls(
            id=data["id"],
            email=data.get("email") or "",
            sources=[PaymentSource.from_dict(item) for item in data.get("sources", [])],
            subscriptions=[Subscription.from_dict(item) for item in data.get("subscriptions", [])],
        )

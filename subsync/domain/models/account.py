"""Account domain model holding the local mirror of a customer's billing state."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from .billing import Customer, PaymentSource, Subscription


@dataclass(slots=True)
class Account:
    """
    Internal account keyed by email.

    The customer is an owned value object. It is replaced wholesale whenever the
    provider reports a newer version; the subscription and payment source are
    always read through it so they can never point at a foreign customer.
    """

    email: str
    tracking_id: str
    customer: Optional[Customer] = None

    @property
    def subscription(self) -> Optional[Subscription]:
        return self.customer.subscription if self.customer else None

    @property
    def payment_source(self) -> Optional[PaymentSource]:
        return self.customer.payment_source if self.customer else None

    def has_active_subscription(self) -> bool:
        subscription = self.subscription
        return subscription is not None and subscription.is_active()

    def set_subscription(self, subscription: Subscription) -> None:
        """Replace the current subscription with the provider's version of it."""
        if self.customer is None or subscription.customer_id != self.customer.id:
            raise ValueError(
                f"Subscription {subscription.id} does not belong to the customer of {self.email}"
            )
        others = [sub for sub in self.customer.subscriptions if sub.id != subscription.id]
        self.customer = replace(self.customer, subscriptions=[subscription] + others)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "tracking_id": self.tracking_id,
            "customer": self.customer.to_dict() if self.customer else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Account":
        customer = data.get("customer")
        return cls(
            email=data["email"],
            tracking_id=data.get("tracking_id") or "",
            customer=Customer.from_dict(customer) if customer else None,
        )

    def __repr__(self) -> str:
        customer_id = self.customer.id if self.customer else None
        return f"<Account email={self.email} customer={customer_id}>"

from __future__ import annotations

from typing import Any, Dict, Protocol

from ..models import Customer, Subscription


class BillingProvider(Protocol):
    """Remote billing provider operations used by the reconciliation core.

    Implementations raise ``CardError`` when a payment method is rejected and
    ``ProviderError`` for every other provider failure.
    """

    def create_customer(self, email: str) -> Customer:
        ...

    def attach_payment_source(self, customer_id: str, token: str) -> Customer:
        ...

    def create_subscription(self, customer_id: str, plan: str) -> Subscription:
        ...

    def update_subscription(self, subscription_id: str, **fields: Any) -> Subscription:
        ...

    def cancel_subscription(self, subscription_id: str) -> Subscription:
        ...

    def fetch_customer(self, customer_id: str) -> Customer:
        ...

    def customer_from_payload(self, payload: Dict[str, Any]) -> Customer:
        ...

    def subscription_from_payload(self, payload: Dict[str, Any]) -> Subscription:
        ...

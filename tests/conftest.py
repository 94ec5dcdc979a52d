"""Shared fixtures.

Reconciliation tests run against ``FakeBillingProvider``, an in-memory stand-in
that mimics how Stripe answers each call. Tests that exercise the SDK wrapper
itself patch the ``stripe`` module directly.
"""

import copy
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

from subsync.domain.errors import CardError
from subsync.domain.models import Customer, PaymentSource, Subscription
from subsync.infrastructure.persistence.sqlite import SQLiteAccountStore
from subsync.services.stripe_service import customer_from_stripe, subscription_from_stripe
from subsync.services.subscription_policy import SubscriptionPolicy
from subsync.services.subscription_service import SubscriptionService

TEST_PLAN = "price_basic_monthly"
TRIAL_END = datetime(2030, 1, 1, tzinfo=timezone.utc)


class FakeBillingProvider:
    """In-memory billing provider recording every call it receives."""

    def __init__(self) -> None:
        self.calls: List[Tuple[Any, ...]] = []
        self.customers: Dict[str, Customer] = {}
        self.failures: Dict[str, Exception] = {}
        self._sequence = 100

    # Test helpers ----------------------------------------------------------
    def fail_next(self, operation: str, error: Exception) -> None:
        """Make the next call to ``operation`` raise ``error``."""
        self.failures[operation] = error

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]

    def add_customer(self, customer: Customer) -> Customer:
        self.customers[customer.id] = copy.deepcopy(customer)
        return customer

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name,) + args)
        if name in self.failures:
            raise self.failures.pop(name)

    def _next_id(self, prefix: str) -> str:
        self._sequence += 1
        return f"{prefix}_{self._sequence}"

    def _find_subscription(self, subscription_id: str) -> Tuple[Customer, Subscription]:
        for customer in self.customers.values():
            for sub in customer.subscriptions:
                if sub.id == subscription_id:
                    return customer, sub
        raise KeyError(subscription_id)

    # BillingProvider ---------------------------------------------------------
    def create_customer(self, email: str) -> Customer:
        self._record("create_customer", email)
        customer = Customer(id=self._next_id("cus"), email=email)
        self.customers[customer.id] = customer
        return copy.deepcopy(customer)

    def attach_payment_source(self, customer_id: str, token: str) -> Customer:
        self._record("attach_payment_source", customer_id, token)
        customer = replace(
            self.customers[customer_id],
            sources=[PaymentSource(id=f"card_{token}", brand="Visa", last_four="4242")],
        )
        self.customers[customer_id] = customer
        return copy.deepcopy(customer)

    def create_subscription(self, customer_id: str, plan: str) -> Subscription:
        self._record("create_subscription", customer_id, plan)
        subscription = Subscription(
            id=self._next_id("sub"),
            customer_id=customer_id,
            plan=plan,
            status="trialing",
            trial_end=TRIAL_END,
        )
        customer = self.customers[customer_id]
        self.customers[customer_id] = replace(customer, subscriptions=[subscription])
        return copy.deepcopy(subscription)

    def update_subscription(self, subscription_id: str, **fields: Any) -> Subscription:
        self._record("update_subscription", subscription_id, fields)
        customer, subscription = self._find_subscription(subscription_id)
        if fields.get("trial_end") == "now":
            subscription = replace(subscription, status="active", trial_end=None)
        self.customers[customer.id] = replace(customer, subscriptions=[subscription])
        return copy.deepcopy(subscription)

    def cancel_subscription(self, subscription_id: str) -> Subscription:
        self._record("cancel_subscription", subscription_id)
        customer, subscription = self._find_subscription(subscription_id)
        canceled = replace(subscription, status="canceled")
        # Stripe only lists live subscriptions on the customer.
        self.customers[customer.id] = replace(customer, subscriptions=[])
        return copy.deepcopy(canceled)

    def fetch_customer(self, customer_id: str) -> Customer:
        self._record("fetch_customer", customer_id)
        return copy.deepcopy(self.customers[customer_id])

    def customer_from_payload(self, payload: Dict[str, Any]) -> Customer:
        return customer_from_stripe(payload)

    def subscription_from_payload(self, payload: Dict[str, Any]) -> Subscription:
        return subscription_from_stripe(payload)


@pytest.fixture
def card_declined() -> CardError:
    return CardError("Your card was declined.", code="card_declined", decline_code="generic_decline")


@pytest.fixture
def billing() -> FakeBillingProvider:
    return FakeBillingProvider()


@pytest.fixture
def account_store(tmp_path: Path):
    store = SQLiteAccountStore(tmp_path / "accounts.db")
    yield store
    store.close()


@pytest.fixture
def policy() -> SubscriptionPolicy:
    return SubscriptionPolicy(exempt_domains=["staff.example.com"])


@pytest.fixture
def subscription_service(
    account_store: SQLiteAccountStore,
    billing: FakeBillingProvider,
    policy: SubscriptionPolicy,
) -> SubscriptionService:
    return SubscriptionService(account_store, billing, default_plan=TEST_PLAN, policy=policy)


@pytest.fixture
def customer_payload():
    """Factory for customer objects shaped the way Stripe serialises them."""
    return _customer_payload


@pytest.fixture
def subscription_payload():
    return _subscription_payload


def _customer_payload(
    customer_id: str,
    email: str,
    subscriptions: Optional[List[Dict[str, Any]]] = None,
    sources: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    return {
        "id": customer_id,
        "object": "customer",
        "email": email,
        "sources": {"object": "list", "data": sources or []},
        "subscriptions": {"object": "list", "data": subscriptions or []},
    }


def _subscription_payload(
    subscription_id: str,
    customer_id: str,
    status: str = "active",
    plan: str = TEST_PLAN,
    trial_end: Optional[int] = None,
) -> Dict[str, Any]:
    return {
        "id": subscription_id,
        "object": "subscription",
        "customer": customer_id,
        "status": status,
        "trial_end": trial_end,
        "cancel_at_period_end": False,
        "items": {
            "object": "list",
            "data": [{"id": "si_1", "price": {"id": plan}, "current_period_end": 1893456000}],
        },
    }

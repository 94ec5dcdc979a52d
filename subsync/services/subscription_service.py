"""Keeps local accounts in step with their Stripe customer and subscription."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..domain.errors import MalformedRequestError, ProviderError
from ..domain.models import (
    Account,
    Customer,
    CustomerUpserted,
    Subscription,
    SubscriptionChanged,
    WebhookEvent,
    parse_webhook_event,
)
from ..domain.ports.billing import BillingProvider
from ..domain.ports.persistence import AccountRepository
from .subscription_policy import SubscriptionPolicy

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SubscribeOutcome:
    """Result of a subscribe call; ``new_subscription`` reflects the state before it ran."""

    account: Account
    subscription: Subscription
    new_subscription: bool

    @property
    def action(self) -> str:
        return "subscribed" if self.new_subscription else "payment-updated"

    @property
    def event_name(self) -> str:
        return "Buy Subscription" if self.new_subscription else "Update Payment Method"


@dataclass(slots=True)
class DashboardSnapshot:
    email: str
    tracking_id: str
    plan: str
    status: str
    trial_end: Optional[datetime]
    current_period_end: Optional[datetime]
    cancel_at_period_end: bool
    payment_brand: Optional[str]
    payment_last_four: Optional[str]
    display_subscription: bool


class SubscriptionService:
    """Reconciliation core for subscribe, unsubscribe, webhook and dashboard paths."""

    def __init__(
        self,
        accounts: AccountRepository,
        billing: BillingProvider,
        default_plan: str,
        policy: Optional[SubscriptionPolicy] = None,
    ) -> None:
        self._accounts = accounts
        self._billing = billing
        self._default_plan = default_plan
        self._policy = policy or SubscriptionPolicy()

    def ensure_subscription(self, account: Account) -> Subscription:
        """
        Make sure the account has a customer and a subscription on Stripe.

        Only missing objects are created, so an account that already has a
        subscription costs no provider calls. Progress is kept on ``account``
        as it is made: if subscription creation fails after the customer was
        created, a retry with the same account only retries the subscription.
        The caller persists the account.

        Raises:
            ProviderError: If a provider call fails
        """
        if account.customer is None:
            account.customer = self._billing.create_customer(account.email)

        subscription = account.subscription
        if subscription is None:
            subscription = self._billing.create_subscription(account.customer.id, self._default_plan)
            account.set_subscription(subscription)
        return subscription

    def ensure_and_store(self, account: Account) -> Subscription:
        """Run ``ensure_subscription`` and persist whatever it had to create."""
        before = account.customer
        try:
            subscription = self.ensure_subscription(account)
        except ProviderError:
            # Keep a freshly created customer so the next request does not create another one.
            if account.customer is not before:
                self._accounts.put(account)
            raise
        if account.customer is not before:
            self._accounts.put(account)
        return subscription

    def subscribe(self, email: str, token: Optional[str]) -> SubscribeOutcome:
        """
        Attach a payment source and end the trial so the account starts paying.

        Args:
            email: Email of the authenticated account
            token: Payment source token produced by Stripe.js

        Returns:
            SubscribeOutcome describing whether this was a new subscription

        Raises:
            MalformedRequestError: If no token was supplied
            CardError: If Stripe rejects the card
            ProviderError: For any other Stripe failure
        """
        if not token or not token.strip():
            raise MalformedRequestError("No stripe token provided")

        account = self._accounts.get_by_email(email, create=True)
        new_subscription = not account.has_active_subscription()

        if account.customer is None:
            account.customer = self._billing.create_customer(account.email)
            # A declined card must not orphan the new customer.
            self._accounts.put(account)
        account.customer = self._billing.attach_payment_source(account.customer.id, token.strip())
        self._drop_canceled_subscription(account)

        subscription = self.ensure_subscription(account)
        subscription = self._billing.update_subscription(subscription.id, trial_end="now")
        account.set_subscription(subscription)

        self._accounts.put(account)
        logger.info("subscribe - %s - %s", account.email, subscription.status)
        return SubscribeOutcome(account, subscription, new_subscription)

    def unsubscribe(self, email: str) -> Subscription:
        """
        Cancel the account's subscription immediately.

        The canceled subscription stays on the account so its last plan and
        status can still be shown.

        Raises:
            MalformedRequestError: If there is nothing to cancel
            ProviderError: If Stripe refuses the cancellation
        """
        account = self._accounts.get_by_email(email, create=True)
        subscription = account.subscription
        if subscription is None or subscription.is_canceled():
            raise MalformedRequestError("This account does not have an active subscription")

        canceled = self._billing.cancel_subscription(subscription.id)
        account.set_subscription(canceled)

        self._accounts.put(account)
        logger.info("unsubscribe - %s", account.email)
        return canceled

    def apply_webhook(self, envelope: Dict[str, Any]) -> Optional[Account]:
        """
        Mirror the customer state reported by a Stripe webhook onto its account.

        Returns:
            The updated account, or None when the event was ignored
        """
        event = parse_webhook_event(envelope)
        customer = self._customer_for_event(event)
        if customer is None:
            logger.debug("Ignoring webhook event %s", event.event_type or "<untyped>")
            return None
        if not customer.email:
            logger.warning(
                "Ignoring webhook event %s: customer %s has no email", event.event_type, customer.id
            )
            return None

        account = self._accounts.get_by_email(customer.email, create=True)
        # Two Stripe customers can share an email; only the one linked to the account may update it.
        if account.customer is not None and account.customer.id != customer.id:
            logger.warning(
                "Ignoring webhook event %s for %s: customer %s does not match linked customer %s",
                event.event_type,
                account.email,
                customer.id,
                account.customer.id,
            )
            return None

        if account.customer is not None:
            # Stripe lists only live subscriptions; keep canceled ones recorded earlier.
            customer = _with_subscriptions(customer, _canceled(account.customer))
        account.customer = customer
        self._accounts.put(account)
        logger.info("stripe_hook - %s:%s", account.email, event.event_type)
        return account

    def dashboard(self, email: str) -> DashboardSnapshot:
        account = self._accounts.get_by_email(email, create=True)
        subscription = self.ensure_and_store(account)
        source = account.payment_source
        return DashboardSnapshot(
            email=account.email,
            tracking_id=account.tracking_id,
            plan=subscription.plan,
            status=subscription.status,
            trial_end=subscription.trial_end,
            current_period_end=subscription.current_period_end,
            cancel_at_period_end=subscription.cancel_at_period_end,
            payment_brand=source.brand if source else None,
            payment_last_four=source.last_four if source else None,
            display_subscription=self._policy.is_required(account.email),
        )

    # ------------------------------------------------------------------
    def _customer_for_event(self, event: WebhookEvent) -> Optional[Customer]:
        if isinstance(event, CustomerUpserted):
            # Payloads from newer API versions omit the subscription list; fetch rather than drop it.
            if "subscriptions" not in event.customer:
                return self._billing.fetch_customer(str(event.customer["id"]))
            return self._billing.customer_from_payload(event.customer)
        if isinstance(event, SubscriptionChanged):
            customer = self._billing.fetch_customer(event.customer_id)
            if not event.subscription.get("id"):
                return customer
            # A canceled subscription is no longer listed on the fetched customer.
            reported = self._billing.subscription_from_payload(event.subscription)
            if reported.customer_id != customer.id or not reported.is_canceled():
                return customer
            return _with_subscriptions(customer, [reported])
        return None

    @staticmethod
    def _drop_canceled_subscription(account: Account) -> None:
        """A canceled subscription cannot be reactivated; let ensure create a new one."""
        customer = account.customer
        if customer is None or not _canceled(customer):
            return
        account.customer = replace(
            customer, subscriptions=[sub for sub in customer.subscriptions if not sub.is_canceled()]
        )


def _canceled(customer: Customer) -> List[Subscription]:
    return [sub for sub in customer.subscriptions if sub.is_canceled()]


def _with_subscriptions(customer: Customer, extra: List[Subscription]) -> Customer:
    """Append subscriptions the customer does not already list, keeping its own first."""
    known = {sub.id for sub in customer.subscriptions}
    missing = [sub for sub in extra if sub.id not in known]
    if not missing:
        return customer
    return replace(customer, subscriptions=customer.subscriptions + missing)


"""Stripe billing provider integration."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

import stripe

from ..domain.errors import CardError, InvalidWebhookError, ProviderError
from ..domain.models import Customer, PaymentSource, Subscription
from ..domain.ports.billing import BillingProvider

logger = logging.getLogger(__name__)

# Newer API versions no longer embed these lists on the customer by default.
CUSTOMER_EXPAND = ["sources", "subscriptions"]


def _field(obj: Any, key: str, default: Any = None) -> Any:
    """Read a key from a plain dict or a StripeObject."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(key, default)
    try:
        value = obj[key]
    except (KeyError, TypeError):
        return default
    return default if value is None else value


def _list_data(obj: Any) -> List[Any]:
    """Items of a Stripe list object, or of a bare list."""
    if obj is None:
        return []
    if isinstance(obj, list):
        return obj
    return list(_field(obj, "data", []) or [])


def _datetime(value: Optional[int]) -> Optional[datetime]:
    return datetime.fromtimestamp(int(value), tz=timezone.utc) if value else None


def _reference_id(value: Any) -> str:
    """IDs may arrive bare or as an expanded object."""
    if isinstance(value, str):
        return value
    return str(_field(value, "id", "") or "")


def _translate_error(exc: stripe.StripeError, action: str) -> ProviderError:
    if isinstance(exc, stripe.CardError):
        error = getattr(exc, "error", None)
        return CardError(
            getattr(exc, "user_message", None) or str(exc),
            code=getattr(exc, "code", None),
            decline_code=_field(error, "decline_code"),
        )
    logger.error("Stripe call failed while trying to %s: %s", action, exc)
    return ProviderError(f"Failed to {action}: {exc}")


class StripeService(BillingProvider):
    """Billing provider client backed by the Stripe SDK."""

    def __init__(
        self,
        secret_key: str,
        webhook_secret: Optional[str] = None,
        timeout_seconds: int = 30,
        max_network_retries: int = 2,
    ) -> None:
        self._webhook_secret = webhook_secret
        self._configure_stripe(secret_key, timeout_seconds, max_network_retries)

    @staticmethod
    def _configure_stripe(secret_key: str, timeout_seconds: int, max_network_retries: int) -> None:
        """Configure the Stripe SDK with the API key and request limits."""
        stripe.api_key = secret_key
        stripe.max_network_retries = max_network_retries
        stripe.default_http_client = stripe.new_default_http_client(timeout=timeout_seconds)

    @property
    def verifies_signatures(self) -> bool:
        return bool(self._webhook_secret)

    # ============ CUSTOMERS ============

    def create_customer(self, email: str) -> Customer:
        try:
            customer = stripe.Customer.create(email=email, expand=CUSTOMER_EXPAND)
        except stripe.StripeError as exc:
            raise _translate_error(exc, f"create customer for {email}") from exc
        logger.info("Created Stripe customer %s for %s", _field(customer, "id"), email)
        return customer_from_stripe(customer)

    def attach_payment_source(self, customer_id: str, token: str) -> Customer:
        try:
            customer = stripe.Customer.modify(customer_id, source=token, expand=CUSTOMER_EXPAND)
        except stripe.StripeError as exc:
            raise _translate_error(exc, f"attach payment source to {customer_id}") from exc
        return customer_from_stripe(customer)

    def fetch_customer(self, customer_id: str) -> Customer:
        try:
            customer = stripe.Customer.retrieve(customer_id, expand=CUSTOMER_EXPAND)
        except stripe.StripeError as exc:
            raise _translate_error(exc, f"retrieve customer {customer_id}") from exc
        return customer_from_stripe(customer)

    # ============ SUBSCRIPTIONS ============

    def create_subscription(self, customer_id: str, plan: str) -> Subscription:
        try:
            subscription = stripe.Subscription.create(
                customer=customer_id,
                items=[{"price": plan}],
                trial_from_plan=True,
            )
        except stripe.StripeError as exc:
            raise _translate_error(exc, f"create subscription for {customer_id}") from exc
        logger.info("Created Stripe subscription %s for %s", _field(subscription, "id"), customer_id)
        return subscription_from_stripe(subscription)

    def update_subscription(self, subscription_id: str, **fields: Any) -> Subscription:
        try:
            subscription = stripe.Subscription.modify(subscription_id, **fields)
        except stripe.StripeError as exc:
            raise _translate_error(exc, f"update subscription {subscription_id}") from exc
        return subscription_from_stripe(subscription)

    def cancel_subscription(self, subscription_id: str) -> Subscription:
        try:
            subscription = stripe.Subscription.cancel(subscription_id)
        except stripe.StripeError as exc:
            raise _translate_error(exc, f"cancel subscription {subscription_id}") from exc
        return subscription_from_stripe(subscription)

    # ============ WEBHOOK ============

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Decode a webhook body, verifying its signature when a secret is configured.

        Args:
            payload: Raw request body
            signature: Value of the ``Stripe-Signature`` header

        Returns:
            The decoded event envelope

        Raises:
            InvalidWebhookError: If the body is not JSON or the signature is invalid
        """
        if self._webhook_secret:
            try:
                stripe.WebhookSignature.verify_header(
                    payload.decode("utf-8", errors="replace"), signature or "", self._webhook_secret
                )
            except stripe.SignatureVerificationError as exc:
                raise InvalidWebhookError("Invalid webhook signature") from exc
        try:
            envelope = json.loads(payload)
        except ValueError as exc:
            raise InvalidWebhookError("Webhook body is not valid JSON") from exc
        if not isinstance(envelope, dict):
            raise InvalidWebhookError("Webhook body must be a JSON object")
        return envelope

    def customer_from_payload(self, payload: Union[Dict[str, Any], Any]) -> Customer:
        return customer_from_stripe(payload)

    def subscription_from_payload(self, payload: Union[Dict[str, Any], Any]) -> Subscription:
        return subscription_from_stripe(payload)


def customer_from_stripe(payload: Union[Dict[str, Any], Any]) -> Customer:
    """Map a Stripe customer (dict or StripeObject) onto the domain model."""
    sources = []
    for source in _list_data(_field(payload, "sources")):
        # Legacy card objects carry brand/last4 directly, Sources nest them under "card".
        card = _field(source, "card") or source
        sources.append(
            PaymentSource(
                id=str(_field(source, "id", "")),
                brand=str(_field(card, "brand", "")),
                last_four=str(_field(card, "last4", "")),
            )
        )
    return Customer(
        id=str(_field(payload, "id", "")),
        email=str(_field(payload, "email", "") or ""),
        sources=sources,
        subscriptions=[
            subscription_from_stripe(item) for item in _list_data(_field(payload, "subscriptions"))
        ],
    )


def subscription_from_stripe(payload: Union[Dict[str, Any], Any]) -> Subscription:
    """Map a Stripe subscription (dict or StripeObject) onto the domain model."""
    items = _list_data(_field(payload, "items"))
    first_item = items[0] if items else None
    plan = _field(payload, "plan")
    if plan:
        plan_id = _reference_id(plan)
    else:
        plan_id = _reference_id(_field(first_item, "price"))
    # current_period_end moved from the subscription onto its items in newer API versions.
    period_end = _field(payload, "current_period_end") or _field(first_item, "current_period_end")
    return Subscription(
        id=str(_field(payload, "id", "")),
        customer_id=_reference_id(_field(payload, "customer")),
        plan=plan_id,
        status=str(_field(payload, "status", "")),
        trial_end=_datetime(_field(payload, "trial_end")),
        current_period_end=_datetime(period_end),
        cancel_at_period_end=bool(_field(payload, "cancel_at_period_end", False)),
    )

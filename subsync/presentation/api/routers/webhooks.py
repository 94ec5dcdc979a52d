"""Stripe webhook ingestion."""

import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from starlette.concurrency import run_in_threadpool

from ....core.dependencies import get_stripe_service, get_subscription_service
from ....domain.errors import InvalidWebhookError
from ....services.stripe_service import StripeService
from ....services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Stripe Webhook"])


@router.post("/stripe-hook", include_in_schema=False)
async def stripe_hook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    stripe_service: StripeService = Depends(get_stripe_service),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> Dict[str, str]:
    """
    Apply a Stripe event to the matching account.

    Unknown event types are acknowledged so Stripe does not keep retrying them.
    Provider or store failures on known types propagate as server errors so
    Stripe redelivers the event.
    """
    payload = await request.body()
    if not stripe_service.verifies_signatures:
        logger.warning("STRIPE_WEBHOOK_SECRET not set; accepting unsigned webhook")
    try:
        envelope = stripe_service.construct_event(payload, stripe_signature)
    except InvalidWebhookError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    account = await run_in_threadpool(subscription_service.apply_webhook, envelope)
    return {"status": "applied" if account is not None else "received"}

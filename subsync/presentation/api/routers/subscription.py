"""Subscribe and unsubscribe actions."""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from fastapi.responses import RedirectResponse

from ....application.services.auth_service import AuthContext
from ....core.config import Settings
from ....core.dependencies import get_settings, get_subscription_service, get_tracking_service
from ....domain.errors import CardError, MalformedRequestError
from ....domain.models import TrackingEvent
from ....services.subscription_service import SubscriptionService
from ....services.tracking_service import TrackingService, source_from_ref
from ..dependencies import request_context, require_auth
from ..schemas.subscription_schemas import SubscribeRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Subscription"])


def _dashboard_redirect(settings: Settings, action: str) -> RedirectResponse:
    return RedirectResponse(
        url=f"{settings.dashboard_path}?action={action}",
        status_code=status.HTTP_302_FOUND,
    )


@router.post("/subscribe")
def subscribe(
    background_tasks: BackgroundTasks,
    payload: Optional[SubscribeRequest] = None,
    ref: Optional[str] = None,
    auth: AuthContext = Depends(require_auth),
    context: Dict[str, Any] = Depends(request_context),
    settings: Settings = Depends(get_settings),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
    tracking_service: TrackingService = Depends(get_tracking_service),
) -> RedirectResponse:
    """Attach a card to the account and start (or keep) the paid subscription."""
    token = payload.stripe_token if payload else None
    try:
        outcome = subscription_service.subscribe(auth.email, token)
    except MalformedRequestError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except CardError as exc:
        logger.info("subscribe - %s - card rejected (%s)", auth.email, exc.code)
        raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=exc.message) from exc

    background_tasks.add_task(
        tracking_service.dispatch,
        TrackingEvent(
            name=outcome.event_name,
            properties={"Plan": outcome.subscription.plan, "Source": source_from_ref(ref)},
        ),
        context,
        auth.email,
    )
    return _dashboard_redirect(settings, outcome.action)


@router.post("/unsubscribe")
def unsubscribe(
    background_tasks: BackgroundTasks,
    auth: AuthContext = Depends(require_auth),
    context: Dict[str, Any] = Depends(request_context),
    settings: Settings = Depends(get_settings),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
    tracking_service: TrackingService = Depends(get_tracking_service),
) -> RedirectResponse:
    """Cancel the account's subscription."""
    try:
        subscription_service.unsubscribe(auth.email)
    except MalformedRequestError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    background_tasks.add_task(
        tracking_service.dispatch,
        TrackingEvent(name="Cancel Subscription"),
        context,
        auth.email,
    )
    return _dashboard_redirect(settings, "unsubscribed")

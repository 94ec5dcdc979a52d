"""Dashboard read path."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends

from ....application.services.auth_service import AuthContext
from ....core.config import Settings
from ....core.dependencies import get_settings, get_subscription_service, get_tracking_service
from ....domain.models import TrackingEvent
from ....services.subscription_service import SubscriptionService
from ....services.tracking_service import TrackingService, source_from_ref
from ..dependencies import request_context, require_auth
from ..schemas.subscription_schemas import DashboardResponse, PaymentSourceInfo, SubscriptionInfo

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/", response_model=DashboardResponse)
def get_dashboard(
    background_tasks: BackgroundTasks,
    action: Optional[str] = None,
    ref: Optional[str] = None,
    tid: Optional[str] = None,
    auth: AuthContext = Depends(require_auth),
    context: Dict[str, Any] = Depends(request_context),
    settings: Settings = Depends(get_settings),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
    tracking_service: TrackingService = Depends(get_tracking_service),
) -> DashboardResponse:
    """Account snapshot with subscription and payment method details."""
    snapshot = subscription_service.dashboard(auth.email)

    if not ref and action:
        ref = f"action: {action}"
    ref = ref or ""

    payment_source = None
    if snapshot.payment_brand is not None:
        payment_source = PaymentSourceInfo(
            brand=snapshot.payment_brand,
            last_four=snapshot.payment_last_four or "",
        )

    background_tasks.add_task(
        tracking_service.dispatch,
        TrackingEvent(
            name="Open Dashboard",
            properties={"Action": action or "", "Source": source_from_ref(ref)},
            tracking_id=tid or None,
        ),
        context,
        auth.email,
    )

    return DashboardResponse(
        email=snapshot.email,
        tracking_id=snapshot.tracking_id,
        subscription=SubscriptionInfo(
            plan=snapshot.plan,
            status=snapshot.status,
            trial_end=snapshot.trial_end,
            current_period_end=snapshot.current_period_end,
            cancel_at_period_end=snapshot.cancel_at_period_end,
        ),
        payment_source=payment_source,
        display_subscription=snapshot.display_subscription,
        stripe_public_key=settings.stripe_public_key,
        analytics_token=settings.analytics_token,
        action=action,
        ref=ref,
    )

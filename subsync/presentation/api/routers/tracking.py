"""Direct analytics event recording."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from ....application.services.auth_service import AuthContext
from ....core.dependencies import get_tracking_service
from ....domain.models import TrackingEvent
from ....services.tracking_service import TrackingService
from ..dependencies import optional_auth, request_context
from ..schemas.tracking_schemas import TrackEventRequest

router = APIRouter(tags=["Analytics"])


@router.post("/track")
def track_event(
    payload: TrackEventRequest,
    auth: Optional[AuthContext] = Depends(optional_auth),
    context: Dict[str, Any] = Depends(request_context),
    tracking_service: TrackingService = Depends(get_tracking_service),
) -> Dict[str, Any]:
    """Record an event and echo it back with the details filled in."""
    event = TrackingEvent(
        name=payload.event,
        properties=dict(payload.properties),
        tracking_id=payload.tracking_id,
    )
    tracked = tracking_service.track(event, context, auth.email if auth else None)
    return tracked.to_dict()

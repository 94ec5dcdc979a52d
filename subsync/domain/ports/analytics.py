from __future__ import annotations

from typing import Any, Dict, Protocol

from ..models import TrackingEvent


class AnalyticsSink(Protocol):
    """Destination for analytics events."""

    def emit(self, event: TrackingEvent, context: Dict[str, Any]) -> None:
        ...

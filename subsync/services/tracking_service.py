"""Analytics event recording."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..domain.models import TrackingEvent
from ..domain.ports.analytics import AnalyticsSink
from ..domain.ports.persistence import AccountRepository

logger = logging.getLogger(__name__)


def source_from_ref(ref: Optional[str]) -> str:
    """
    Derive the ``Source`` analytics property from a ``ref`` query value.

    ``action: <name>`` refs are generated by the dashboard itself, anything
    else is an external referrer tag such as ``app`` or ``newsletter:2024-05``.
    """
    if not ref or not ref.strip():
        return "Direct"
    head = ref.split(":", 1)[0].strip()
    if head == "action":
        return "Dashboard"
    return head or "Direct"


class LoggingAnalyticsSink(AnalyticsSink):
    """Writes events to the application log."""

    def emit(self, event: TrackingEvent, context: Dict[str, Any]) -> None:
        logger.info(
            "track - %s - %s - %s",
            event.name,
            event.tracking_id or "-",
            event.properties,
        )


class TrackingService:
    """Fills in per-account and per-request details before handing events to the sink."""

    def __init__(self, accounts: AccountRepository, sink: AnalyticsSink) -> None:
        self._accounts = accounts
        self._sink = sink

    def track(
        self,
        event: TrackingEvent,
        context: Optional[Dict[str, Any]] = None,
        email: Optional[str] = None,
    ) -> TrackingEvent:
        context = context or {}
        if email and not event.tracking_id:
            event.tracking_id = self._accounts.get_by_email(email, create=True).tracking_id

        event.properties.setdefault("Authenticated", bool(email))
        if context.get("user_agent"):
            event.properties.setdefault("User Agent", context["user_agent"])
        if context.get("ip"):
            event.properties.setdefault("IP", context["ip"])
        if context.get("referrer"):
            event.properties.setdefault("Referrer", context["referrer"])

        self._sink.emit(event, context)
        return event

    def dispatch(
        self,
        event: TrackingEvent,
        context: Optional[Dict[str, Any]] = None,
        email: Optional[str] = None,
    ) -> None:
        """Fire-and-forget variant of ``track``: failures are logged and dropped."""
        try:
            self.track(event, context, email)
        except Exception:
            logger.exception("Dropping analytics event %s", event.name)

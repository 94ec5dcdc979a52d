from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(slots=True)
class TrackingEvent:
    """Analytics event handed to the analytics sink; never persisted here."""

    name: str
    properties: Dict[str, Any] = field(default_factory=dict)
    tracking_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "properties": dict(self.properties),
            "trackingID": self.tracking_id,
        }

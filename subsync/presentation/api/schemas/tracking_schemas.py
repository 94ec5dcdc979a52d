"""Pydantic schemas for the analytics endpoint."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class TrackEventRequest(BaseModel):
    """Analytics event as posted by the web client."""

    model_config = ConfigDict(populate_by_name=True)

    event: str = Field(..., min_length=1, description="Event name")
    properties: Dict[str, Any] = Field(default_factory=dict)
    tracking_id: Optional[str] = Field(None, alias="trackingID")

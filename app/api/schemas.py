"""Pydantic request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class EventQueuedResponse(BaseModel):
    status: str = "queued"
    event_type: str


class DeadLetterResponse(BaseModel):
    event_type: str
    payload: dict
    error: str
    failed_at: datetime


class RecommendationLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    series_id: int
    recommended_at: datetime | None
    watched: bool

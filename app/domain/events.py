"""Domain events delivered to the recommendation consumers."""

from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class DomainEvent(BaseModel):
    """Immutable fact published by the API; unknown fields are ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    event_type: ClassVar[str]


class EpisodeWatchedEvent(DomainEvent):
    event_type: ClassVar[str] = "episode_watched"

    episode_id: int
    user_id: int
    series_id: int
    is_completed: bool
    episode_number: int = 0
    season_id: int = 0
    season_number: int = 0
    series_title: str = ""
    user_name: str = ""
    watched_at: datetime = Field(default_factory=datetime.utcnow)


class ReviewCreatedEvent(DomainEvent):
    event_type: ClassVar[str] = "review_created"

    rating_id: int
    user_id: int
    series_id: int
    score: int = Field(ge=0, le=10)
    series_title: str = ""
    user_name: str = ""
    comment: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

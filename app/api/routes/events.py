"""Event publishing and dead-letter routes."""

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.dependencies import get_worker
from app.api.schemas import DeadLetterResponse, EventQueuedResponse
from app.domain.events import DomainEvent, EpisodeWatchedEvent, ReviewCreatedEvent
from app.domain.exceptions import EventQueueFullError
from app.worker import EventWorker

router = APIRouter(prefix="/events", tags=["Events"])


async def _queue(event: DomainEvent, worker: EventWorker) -> EventQueuedResponse:
    try:
        await worker.publish(event)
    except EventQueueFullError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    return EventQueuedResponse(event_type=event.event_type)


@router.post(
    "/episode-watched",
    response_model=EventQueuedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def publish_episode_watched(
    event: EpisodeWatchedEvent,
    worker: EventWorker = Depends(get_worker),
) -> EventQueuedResponse:
    """Queue an EpisodeWatchedEvent for the recommendation consumers."""
    return await _queue(event, worker)


@router.post(
    "/review-created",
    response_model=EventQueuedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def publish_review_created(
    event: ReviewCreatedEvent,
    worker: EventWorker = Depends(get_worker),
) -> EventQueuedResponse:
    """Queue a ReviewCreatedEvent for the recommendation consumers."""
    return await _queue(event, worker)


@router.get("/dead-letters", response_model=list[DeadLetterResponse])
async def list_dead_letters(
    worker: EventWorker = Depends(get_worker),
) -> list[DeadLetterResponse]:
    return [
        DeadLetterResponse(
            event_type=letter.event.event_type,
            payload=letter.event.model_dump(mode="json"),
            error=letter.error,
            failed_at=letter.failed_at,
        )
        for letter in worker.dead_letters
    ]

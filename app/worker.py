"""
In-process event worker.

Delivers each published event to the consumer subscribed to its type, one
database session per message. Events whose consumer fails after its own
retries are parked in ``dead_letters`` instead of being redelivered.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.adapters.persistence.recommendation_logs import SqlAlchemyRecommendationLogRepository
from app.config import Settings
from app.consumers.episode_watched import EpisodeWatchedConsumer
from app.consumers.review_created import ReviewCreatedConsumer
from app.domain.events import DomainEvent, EpisodeWatchedEvent, ReviewCreatedEvent
from app.domain.exceptions import EventQueueFullError, UnknownEventTypeError
from app.services.retry import RetryExecutor
from app.services.watching_state import SeriesWatchingStateService

logger = logging.getLogger(__name__)


class EventConsumer(Protocol):
    async def handle(self, event: DomainEvent, cancel_event: asyncio.Event | None = None) -> None: ...


ConsumerFactory = Callable[[AsyncSession], EventConsumer]


@dataclass
class DeadLetter:
    event: DomainEvent
    error: str
    failed_at: datetime = field(default_factory=datetime.utcnow)


class EventWorker:
    """Queue-backed dispatcher running ``concurrency`` consumer tasks."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        queue_size: int = 1000,
        concurrency: int = 1,
        dead_letter_limit: int = 1000,
    ) -> None:
        if queue_size < 1:
            raise ValueError("queue_size must be at least 1")
        self._session_factory = session_factory
        self._queue: asyncio.Queue[DomainEvent] = asyncio.Queue(maxsize=queue_size)
        self._concurrency = concurrency
        self._factories: dict[type[DomainEvent], ConsumerFactory] = {}
        self._tasks: list[asyncio.Task] = []
        self._stopping = asyncio.Event()
        # Oldest entries are dropped once the limit is reached.
        self.dead_letters: deque[DeadLetter] = deque(maxlen=dead_letter_limit)

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def subscribe(self, event_type: type[DomainEvent], factory: ConsumerFactory) -> None:
        self._factories[event_type] = factory
        logger.info("Subscribed consumer to %s", event_type.event_type)

    async def publish(self, event: DomainEvent) -> None:
        if type(event) not in self._factories:
            raise UnknownEventTypeError(f"No consumer subscribed to {type(event).__name__}")
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("Event queue full, rejecting %s", event.event_type)
            raise EventQueueFullError(
                f"Event queue is full ({self._queue.maxsize} pending)"
            ) from None
        logger.debug("Queued %s (%d pending)", event.event_type, self._queue.qsize())

    async def start(self) -> None:
        if self._tasks:
            return
        self._stopping.clear()
        self._tasks = [
            asyncio.create_task(self._consume(), name=f"event-worker-{n}")
            for n in range(self._concurrency)
        ]
        logger.info("Event worker started with %d consumer task(s)", self._concurrency)

    async def stop(self) -> None:
        logger.info("Event worker stopping...")
        self._stopping.set()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Event worker stopped")

    async def join(self) -> None:
        """Wait until every queued event has been handled."""
        await self._queue.join()

    async def dispatch(self, event: DomainEvent) -> None:
        """Handle one event; a consumer failure dead-letters the event."""
        factory = self._factories.get(type(event))
        if factory is None:
            raise UnknownEventTypeError(f"No consumer subscribed to {type(event).__name__}")

        logger.info("Received %s", event.event_type)
        try:
            async with self._session_factory() as session:
                consumer = factory(session)
                await consumer.handle(event, self._stopping)
        except Exception as exc:
            self._dead_letter(event, exc)

    def _dead_letter(self, event: DomainEvent, exc: Exception) -> None:
        logger.exception("Dead-lettering %s: %s", event.event_type, exc)
        self.dead_letters.append(DeadLetter(event=event, error=str(exc)))

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self.dispatch(event)
            except Exception as exc:
                self._dead_letter(event, exc)
            finally:
                self._queue.task_done()


def create_worker(
    session_factory: async_sessionmaker[AsyncSession],
    config: Settings,
    executor: RetryExecutor | None = None,
) -> EventWorker:
    """Build a worker with both recommendation consumers subscribed."""
    executor = executor or RetryExecutor(
        max_attempts=config.retry_max_attempts,
        base_delay_seconds=config.retry_base_delay_seconds,
        max_delay_seconds=config.retry_max_delay_seconds,
    )
    worker = EventWorker(
        session_factory,
        queue_size=config.worker_queue_size,
        concurrency=config.worker_concurrency,
        dead_letter_limit=config.worker_dead_letter_limit,
    )
    worker.subscribe(
        EpisodeWatchedEvent,
        lambda session: EpisodeWatchedConsumer(
            SqlAlchemyRecommendationLogRepository(session),
            SeriesWatchingStateService(session),
            executor,
            isolate_log_failures=config.isolate_recommendation_log_failures,
        ),
    )
    worker.subscribe(
        ReviewCreatedEvent,
        lambda session: ReviewCreatedConsumer(
            SqlAlchemyRecommendationLogRepository(session),
            executor,
            high_rating_threshold=config.high_rating_threshold,
            isolate_log_failures=config.isolate_recommendation_log_failures,
        ),
    )
    return worker

"""Consumer for review created events."""

import asyncio
import logging

from app.consumers.recommendations import mark_recommendations_watched
from app.domain.events import ReviewCreatedEvent
from app.ports.recommendation_logs import RecommendationLogRepositoryPort
from app.services.retry import RetryExecutor

logger = logging.getLogger(__name__)

HIGH_RATING_THRESHOLD = 8


class ReviewCreatedConsumer:
    """A high score implies the user watched the series it reviews."""

    def __init__(
        self,
        repository: RecommendationLogRepositoryPort,
        executor: RetryExecutor,
        high_rating_threshold: int = HIGH_RATING_THRESHOLD,
        isolate_log_failures: bool = False,
    ) -> None:
        self._repository = repository
        self._executor = executor
        self._threshold = high_rating_threshold
        self._isolate_log_failures = isolate_log_failures

    async def handle(
        self, event: ReviewCreatedEvent, cancel_event: asyncio.Event | None = None
    ) -> None:
        logger.info(
            "Processing ReviewCreatedEvent - rating_id=%d, user_id=%d, series_id=%d, score=%d",
            event.rating_id,
            event.user_id,
            event.series_id,
            event.score,
        )

        try:
            await self._executor.execute(
                lambda: self._process(event),
                f"ReviewCreatedEvent processing for rating_id={event.rating_id}, user_id={event.user_id}",
                cancel_event,
            )
        except Exception:
            logger.exception(
                "Failed to process ReviewCreatedEvent after retries - rating_id=%d, user_id=%d",
                event.rating_id,
                event.user_id,
            )
            raise

        logger.info(
            "Successfully processed ReviewCreatedEvent - rating_id=%d, user_id=%d",
            event.rating_id,
            event.user_id,
        )

    async def _process(self, event: ReviewCreatedEvent) -> None:
        if event.score >= self._threshold:
            await mark_recommendations_watched(
                self._repository,
                event.user_id,
                event.series_id,
                isolate_failures=self._isolate_log_failures,
            )
        else:
            logger.debug(
                "Score %d below threshold %d, recommendation logs unchanged - user_id=%d, series_id=%d",
                event.score,
                self._threshold,
                event.user_id,
                event.series_id,
            )

        logger.info(
            "Review data logged for recommendations - user_id=%d, series_id=%d, score=%d",
            event.user_id,
            event.series_id,
            event.score,
        )

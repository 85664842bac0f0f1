"""Consumer for episode watched events."""

import asyncio
import logging

from app.consumers.recommendations import mark_recommendations_watched
from app.domain.events import EpisodeWatchedEvent
from app.ports.recommendation_logs import RecommendationLogRepositoryPort
from app.ports.watching_state import WatchingStatePort
from app.services.retry import RetryExecutor

logger = logging.getLogger(__name__)


class EpisodeWatchedConsumer:
    """Marks recommended series as watched once the user completes an episode."""

    def __init__(
        self,
        repository: RecommendationLogRepositoryPort,
        watching_state: WatchingStatePort,
        executor: RetryExecutor,
        isolate_log_failures: bool = False,
    ) -> None:
        self._repository = repository
        self._watching_state = watching_state
        self._executor = executor
        self._isolate_log_failures = isolate_log_failures

    async def handle(
        self, event: EpisodeWatchedEvent, cancel_event: asyncio.Event | None = None
    ) -> None:
        """
        Process one event. Raises ``RetryExhaustedError`` when the
        recommendation log update keeps failing, so the delivery layer can
        dead-letter the message.
        """
        logger.info(
            "Processing EpisodeWatchedEvent - episode_id=%d, user_id=%d, series_id=%d, is_completed=%s",
            event.episode_id,
            event.user_id,
            event.series_id,
            event.is_completed,
        )

        if not event.is_completed:
            logger.debug(
                "Skipping incomplete episode watch - episode_id=%d, user_id=%d",
                event.episode_id,
                event.user_id,
            )
            return

        try:
            await self._executor.execute(
                lambda: self._process(event),
                f"EpisodeWatchedEvent processing for episode_id={event.episode_id}, user_id={event.user_id}",
                cancel_event,
            )
        except Exception:
            logger.exception(
                "Failed to process EpisodeWatchedEvent after retries - episode_id=%d, user_id=%d",
                event.episode_id,
                event.user_id,
            )
            raise

        logger.info(
            "Successfully processed EpisodeWatchedEvent - episode_id=%d, user_id=%d",
            event.episode_id,
            event.user_id,
        )

    async def _process(self, event: EpisodeWatchedEvent) -> None:
        await mark_recommendations_watched(
            self._repository,
            event.user_id,
            event.series_id,
            isolate_failures=self._isolate_log_failures,
        )

        # Advisory only: a failed lookup must not trigger a retry.
        try:
            status = await self._watching_state.get_status(event.user_id, event.series_id)
            logger.debug(
                "Current watching state for user_id=%d, series_id=%d: %s",
                event.user_id,
                event.series_id,
                status.value,
            )
        except Exception:
            logger.warning(
                "Failed to get watching state for user_id=%d, series_id=%d",
                event.user_id,
                event.series_id,
                exc_info=True,
            )

        logger.info(
            "Updated progress tracking - user_id=%d, series_id=%d, episode_id=%d",
            event.user_id,
            event.series_id,
            event.episode_id,
        )

"""Recommendation log bookkeeping shared by the event consumers."""

import logging

from app.ports.recommendation_logs import RecommendationLogRepositoryPort

logger = logging.getLogger(__name__)


async def mark_recommendations_watched(
    repository: RecommendationLogRepositoryPort,
    user_id: int,
    series_id: int,
    isolate_failures: bool = False,
) -> int:
    """
    Flag every unwatched recommendation of ``series_id`` for ``user_id`` as watched.

    Already watched logs are never returned by the repository, so applying the
    same event twice updates nothing the second time. Returns the number of
    logs updated.

    With ``isolate_failures`` a persistence error is logged and swallowed,
    otherwise it propagates so the surrounding retry can react to it.
    """
    try:
        logs = await repository.find_unwatched(user_id, series_id)
        if not logs:
            logger.debug(
                "No unwatched recommendation logs - user_id=%d, series_id=%d",
                user_id,
                series_id,
            )
            return 0
        for log in logs:
            log.watched = True
        await repository.save()
    except Exception:
        if not isolate_failures:
            raise
        logger.warning(
            "Failed to update recommendation logs - user_id=%d, series_id=%d",
            user_id,
            series_id,
            exc_info=True,
        )
        return 0

    logger.info(
        "Updated %d recommendation log(s) - user_id=%d, series_id=%d",
        len(logs),
        user_id,
        series_id,
    )
    return len(logs)

"""Series watching state lookup with lazy persistence."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.exceptions import SeriesNotFoundError
from app.domain.models import (
    Episode,
    EpisodeProgress,
    Season,
    Series,
    SeriesWatchingState,
    SeriesWatchingStatus,
)
from app.ports.watching_state import WatchingStatePort

logger = logging.getLogger(__name__)


def status_for(total_episodes: int, watched_episodes: int) -> SeriesWatchingStatus:
    """Derive a watching status from episode counts."""
    if total_episodes == 0 or watched_episodes == 0:
        return SeriesWatchingStatus.TO_WATCH
    if watched_episodes >= total_episodes:
        return SeriesWatchingStatus.FINISHED
    return SeriesWatchingStatus.IN_PROGRESS


class SeriesWatchingStateService(WatchingStatePort):
    """Returns the stored state, computing and storing it on first lookup."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_status(self, user_id: int, series_id: int) -> SeriesWatchingStatus:
        result = await self._session.execute(
            select(SeriesWatchingState).where(
                SeriesWatchingState.user_id == user_id,
                SeriesWatchingState.series_id == series_id,
            )
        )
        state = result.scalar_one_or_none()
        if state:
            return state.status
        return await self._calculate_and_persist(user_id, series_id)

    async def _calculate_and_persist(self, user_id: int, series_id: int) -> SeriesWatchingStatus:
        series = await self._session.get(Series, series_id)
        if series is None:
            logger.error("Series not found: series_id=%d", series_id)
            raise SeriesNotFoundError(series_id)

        episode_ids = select(Episode.id).join(Season).where(Season.series_id == series_id)
        total = await self._session.scalar(select(func.count()).select_from(episode_ids.subquery()))
        watched = await self._session.scalar(
            select(func.count(EpisodeProgress.episode_id.distinct())).where(
                EpisodeProgress.user_id == user_id,
                EpisodeProgress.is_completed.is_(True),
                EpisodeProgress.episode_id.in_(episode_ids),
            )
        )
        total = total or 0
        watched = watched or 0

        status = status_for(total, watched)
        self._session.add(
            SeriesWatchingState(
                user_id=user_id,
                series_id=series_id,
                status=status,
                watched_episodes_count=watched,
                total_episodes_count=total,
            )
        )
        try:
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise
        logger.info(
            "Computed watching state: user_id=%d, series_id=%d, %d/%d episodes -> %s",
            user_id,
            series_id,
            watched,
            total,
            status.value,
        )
        return status

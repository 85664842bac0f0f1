"""SQLAlchemy recommendation log repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models import RecommendationLog
from app.ports.recommendation_logs import RecommendationLogRepositoryPort


class SqlAlchemyRecommendationLogRepository(RecommendationLogRepositoryPort):
    """Recommendation logs stored in the relational database."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_unwatched(self, user_id: int, series_id: int) -> list[RecommendationLog]:
        try:
            result = await self._session.execute(
                select(RecommendationLog).where(
                    RecommendationLog.user_id == user_id,
                    RecommendationLog.series_id == series_id,
                    RecommendationLog.watched.is_(False),
                )
            )
        except Exception:
            # Leave the session usable for the next attempt.
            await self._session.rollback()
            raise
        return list(result.scalars().all())

    async def save(self) -> None:
        try:
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise

    async def list_for(self, user_id: int | None = None, series_id: int | None = None) -> list[RecommendationLog]:
        """Return logs, optionally filtered by user and series."""
        query = select(RecommendationLog).order_by(RecommendationLog.id)
        if user_id is not None:
            query = query.where(RecommendationLog.user_id == user_id)
        if series_id is not None:
            query = query.where(RecommendationLog.series_id == series_id)
        result = await self._session.execute(query)
        return list(result.scalars().all())

"""Recommendation log inspection routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.recommendation_logs import SqlAlchemyRecommendationLogRepository
from app.api.schemas import RecommendationLogResponse
from app.database import get_session

router = APIRouter(prefix="/recommendation-logs", tags=["Recommendations"])


@router.get("", response_model=list[RecommendationLogResponse])
async def list_recommendation_logs(
    user_id: int | None = None,
    series_id: int | None = None,
    session: AsyncSession = Depends(get_session),
) -> list[RecommendationLogResponse]:
    """List recommendation logs, optionally filtered by user and series."""
    repository = SqlAlchemyRecommendationLogRepository(session)
    logs = await repository.list_for(user_id=user_id, series_id=series_id)
    return [RecommendationLogResponse.model_validate(log) for log in logs]

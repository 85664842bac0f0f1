"""Recommendation log repository port."""

from abc import ABC, abstractmethod

from app.domain.models import RecommendationLog


class RecommendationLogRepositoryPort(ABC):
    """Persistence operations the recommendation consumers rely on."""

    @abstractmethod
    async def find_unwatched(self, user_id: int, series_id: int) -> list[RecommendationLog]:
        """Return the logs for (user, series) that are not yet marked watched."""
        ...

    @abstractmethod
    async def save(self) -> None:
        """Persist pending changes to the loaded logs as one batch."""
        ...

"""Series watching state lookup port."""

from abc import ABC, abstractmethod

from app.domain.models import SeriesWatchingStatus


class WatchingStatePort(ABC):
    @abstractmethod
    async def get_status(self, user_id: int, series_id: int) -> SeriesWatchingStatus:
        """Return the user's current watching status for a series."""
        ...

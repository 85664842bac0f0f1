from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.adapters.persistence.recommendation_logs import SqlAlchemyRecommendationLogRepository
from app.domain.models import Base, RecommendationLog, Series


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
async def engine(tmp_path):
    """Fresh SQLite database per test with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as s:
        yield s


async def seed_recommendations(
    session: AsyncSession,
    user_id: int = 1,
    series_id: int = 5,
    watched: tuple[bool, ...] = (False,),
) -> list[RecommendationLog]:
    """Create a series and one recommendation log per ``watched`` flag."""
    if await session.get(Series, series_id) is None:
        session.add(Series(id=series_id, title=f"Series {series_id}"))
    logs = [RecommendationLog(user_id=user_id, series_id=series_id, watched=flag) for flag in watched]
    session.add_all(logs)
    await session.commit()
    return logs


async def fetch_logs(session_factory, user_id: int = 1, series_id: int = 5) -> list[RecommendationLog]:
    async with session_factory() as s:
        return await SqlAlchemyRecommendationLogRepository(s).list_for(user_id, series_id)

"""Tests for the episode watched and review created consumers."""

import logging

import pytest

from app.adapters.persistence.recommendation_logs import SqlAlchemyRecommendationLogRepository
from app.consumers.episode_watched import EpisodeWatchedConsumer
from app.consumers.recommendations import mark_recommendations_watched
from app.consumers.review_created import ReviewCreatedConsumer
from app.domain.events import EpisodeWatchedEvent, ReviewCreatedEvent
from app.domain.exceptions import RetryExhaustedError
from app.domain.models import RecommendationLog, SeriesWatchingStatus
from app.ports.recommendation_logs import RecommendationLogRepositoryPort
from app.ports.watching_state import WatchingStatePort
from app.services.retry import RetryExecutor
from conftest import fetch_logs, seed_recommendations


class InMemoryRepository(RecommendationLogRepositoryPort):
    """Repository double that can fail a given number of calls."""

    def __init__(self, logs: list[RecommendationLog] | None = None, failures: int = 0) -> None:
        self.logs = logs or []
        self.failures = failures
        self.find_calls = 0
        self.save_calls = 0

    async def find_unwatched(self, user_id: int, series_id: int) -> list[RecommendationLog]:
        self.find_calls += 1
        if self.find_calls <= self.failures:
            raise OSError("database unavailable")
        return [
            log
            for log in self.logs
            if log.user_id == user_id and log.series_id == series_id and not log.watched
        ]

    async def save(self) -> None:
        self.save_calls += 1


class StubWatchingState(WatchingStatePort):
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls = 0

    async def get_status(self, user_id: int, series_id: int) -> SeriesWatchingStatus:
        self.calls += 1
        if self.error:
            raise self.error
        return SeriesWatchingStatus.IN_PROGRESS


def episode_event(**overrides) -> EpisodeWatchedEvent:
    data = {"episode_id": 10, "user_id": 1, "series_id": 5, "is_completed": True}
    data.update(overrides)
    return EpisodeWatchedEvent(**data)


def review_event(score: int, **overrides) -> ReviewCreatedEvent:
    data = {"rating_id": 3, "user_id": 1, "series_id": 5, "score": score}
    data.update(overrides)
    return ReviewCreatedEvent(**data)


def unwatched_log(user_id: int = 1, series_id: int = 5) -> RecommendationLog:
    return RecommendationLog(user_id=user_id, series_id=series_id, watched=False)


# ── Episode watched ────────────────────────────────


@pytest.mark.asyncio
async def test_completed_episode_marks_recommendation_watched(session, session_factory, sleeper, caplog):
    await seed_recommendations(session)
    consumer = EpisodeWatchedConsumer(
        SqlAlchemyRecommendationLogRepository(session),
        StubWatchingState(),
        RetryExecutor(sleep=sleeper),
    )

    with caplog.at_level(logging.INFO):
        await consumer.handle(episode_event())

    logs = await fetch_logs(session_factory)
    assert [log.watched for log in logs] == [True]
    assert "Successfully processed EpisodeWatchedEvent - episode_id=10, user_id=1" in caplog.text
    assert sleeper.delays == []


@pytest.mark.asyncio
async def test_incomplete_episode_touches_nothing(sleeper):
    repository = InMemoryRepository([unwatched_log()])
    state = StubWatchingState()
    consumer = EpisodeWatchedConsumer(repository, state, RetryExecutor(sleep=sleeper))

    await consumer.handle(episode_event(is_completed=False))

    assert repository.find_calls == 0
    assert repository.save_calls == 0
    assert state.calls == 0
    assert repository.logs[0].watched is False


@pytest.mark.asyncio
async def test_only_unwatched_rows_are_updated_and_rerun_is_noop(session, session_factory, sleeper):
    await seed_recommendations(session, watched=(True, False))
    repository = SqlAlchemyRecommendationLogRepository(session)
    consumer = EpisodeWatchedConsumer(repository, StubWatchingState(), RetryExecutor(sleep=sleeper))

    assert len(await repository.find_unwatched(1, 5)) == 1
    await consumer.handle(episode_event())
    assert await repository.find_unwatched(1, 5) == []

    await consumer.handle(episode_event())
    logs = await fetch_logs(session_factory)
    assert [log.watched for log in logs] == [True, True]


@pytest.mark.asyncio
async def test_other_user_and_series_are_untouched(session, session_factory, sleeper):
    await seed_recommendations(session, user_id=1, series_id=5)
    await seed_recommendations(session, user_id=2, series_id=5)
    await seed_recommendations(session, user_id=1, series_id=6)
    consumer = EpisodeWatchedConsumer(
        SqlAlchemyRecommendationLogRepository(session),
        StubWatchingState(),
        RetryExecutor(sleep=sleeper),
    )

    await consumer.handle(episode_event())

    assert [log.watched for log in await fetch_logs(session_factory, 1, 5)] == [True]
    assert [log.watched for log in await fetch_logs(session_factory, 2, 5)] == [False]
    assert [log.watched for log in await fetch_logs(session_factory, 1, 6)] == [False]


@pytest.mark.asyncio
async def test_watching_state_failure_is_advisory(sleeper, caplog):
    repository = InMemoryRepository([unwatched_log()])
    state = StubWatchingState(error=RuntimeError("state service down"))
    consumer = EpisodeWatchedConsumer(repository, state, RetryExecutor(sleep=sleeper))

    with caplog.at_level(logging.WARNING):
        await consumer.handle(episode_event())

    assert repository.logs[0].watched is True
    assert state.calls == 1
    assert sleeper.delays == []
    assert "Failed to get watching state for user_id=1, series_id=5" in caplog.text


@pytest.mark.asyncio
async def test_transient_failure_is_retried(sleeper):
    repository = InMemoryRepository([unwatched_log()], failures=1)
    consumer = EpisodeWatchedConsumer(repository, StubWatchingState(), RetryExecutor(sleep=sleeper))

    await consumer.handle(episode_event())

    assert repository.find_calls == 2
    assert sleeper.delays == [2]
    assert repository.logs[0].watched is True


@pytest.mark.asyncio
async def test_persistent_failure_raises_retry_exhausted(sleeper, caplog):
    repository = InMemoryRepository([unwatched_log()], failures=100)
    consumer = EpisodeWatchedConsumer(repository, StubWatchingState(), RetryExecutor(sleep=sleeper))

    with caplog.at_level(logging.ERROR), pytest.raises(RetryExhaustedError) as exc_info:
        await consumer.handle(episode_event())

    assert repository.find_calls == 3
    assert exc_info.value.attempts == 3
    assert "episode_id=10" in exc_info.value.operation_name
    assert isinstance(exc_info.value.__cause__, OSError)
    failure = next(r for r in caplog.records if r.getMessage().startswith("Failed to process EpisodeWatchedEvent"))
    assert failure.exc_info is not None


@pytest.mark.asyncio
async def test_isolated_log_failure_is_swallowed(sleeper, caplog):
    repository = InMemoryRepository([unwatched_log()], failures=100)
    state = StubWatchingState()
    consumer = EpisodeWatchedConsumer(
        repository, state, RetryExecutor(sleep=sleeper), isolate_log_failures=True
    )

    with caplog.at_level(logging.WARNING):
        await consumer.handle(episode_event())

    assert repository.find_calls == 1
    assert sleeper.delays == []
    assert state.calls == 1
    assert "Failed to update recommendation logs - user_id=1, series_id=5" in caplog.text


# ── Review created ─────────────────────────────────


@pytest.mark.asyncio
async def test_low_score_leaves_logs_unwatched(session, session_factory, sleeper):
    await seed_recommendations(session)
    consumer = ReviewCreatedConsumer(
        SqlAlchemyRecommendationLogRepository(session), RetryExecutor(sleep=sleeper)
    )

    await consumer.handle(review_event(score=7))

    assert [log.watched for log in await fetch_logs(session_factory)] == [False]


@pytest.mark.asyncio
async def test_threshold_score_marks_logs_watched(session, session_factory, sleeper):
    await seed_recommendations(session, watched=(False, False))
    consumer = ReviewCreatedConsumer(
        SqlAlchemyRecommendationLogRepository(session), RetryExecutor(sleep=sleeper)
    )

    await consumer.handle(review_event(score=8))

    assert [log.watched for log in await fetch_logs(session_factory)] == [True, True]


@pytest.mark.asyncio
async def test_low_score_does_not_query(sleeper):
    repository = InMemoryRepository([unwatched_log()])
    consumer = ReviewCreatedConsumer(repository, RetryExecutor(sleep=sleeper))

    await consumer.handle(review_event(score=3))

    assert repository.find_calls == 0


@pytest.mark.asyncio
async def test_custom_threshold(sleeper):
    repository = InMemoryRepository([unwatched_log()])
    consumer = ReviewCreatedConsumer(
        repository, RetryExecutor(sleep=sleeper), high_rating_threshold=6
    )

    await consumer.handle(review_event(score=6))

    assert repository.logs[0].watched is True


@pytest.mark.asyncio
async def test_review_persistent_failure_raises_retry_exhausted(sleeper):
    repository = InMemoryRepository([unwatched_log()], failures=100)
    consumer = ReviewCreatedConsumer(repository, RetryExecutor(sleep=sleeper))

    with pytest.raises(RetryExhaustedError) as exc_info:
        await consumer.handle(review_event(score=9))

    assert repository.find_calls == 3
    assert sleeper.delays == [2, 4]
    assert "rating_id=3" in str(exc_info.value)


# ── Shared bookkeeping ─────────────────────────────


@pytest.mark.asyncio
async def test_mark_returns_number_of_updated_logs():
    repository = InMemoryRepository([unwatched_log(), unwatched_log(), unwatched_log(series_id=9)])

    assert await mark_recommendations_watched(repository, 1, 5) == 2
    assert repository.save_calls == 1
    assert await mark_recommendations_watched(repository, 1, 5) == 0
    assert repository.save_calls == 1


@pytest.mark.asyncio
async def test_mark_propagates_errors_unless_isolated():
    with pytest.raises(OSError):
        await mark_recommendations_watched(InMemoryRepository(failures=1), 1, 5)

    assert await mark_recommendations_watched(InMemoryRepository(failures=1), 1, 5, isolate_failures=True) == 0

"""Application settings loaded from environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the recommendation event worker.

    Environment Variables:
        DATABASE_URL: SQLAlchemy async URL (default: local SQLite file)
        LOG_LEVEL: Root log level (default: INFO)
        RETRY_MAX_ATTEMPTS: Total attempts per event, not additional retries
        RETRY_BASE_DELAY_SECONDS: Delay after the first failed attempt
        RETRY_MAX_DELAY_SECONDS: Cap for the exponential backoff
        HIGH_RATING_THRESHOLD: Review score (inclusive) that marks a series watched
        ISOLATE_RECOMMENDATION_LOG_FAILURES: Swallow log update errors instead of retrying
        WORKER_ENABLED: Start the in-process worker with the application
        WORKER_QUEUE_SIZE: Maximum number of pending events
        WORKER_CONCURRENCY: Number of consumer tasks
        WORKER_DEAD_LETTER_LIMIT: Dead-lettered events kept in memory
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    database_url: str = "sqlite+aiosqlite:///./serilovers.db"
    log_level: str = "INFO"

    retry_max_attempts: int = Field(default=3, ge=1)
    retry_base_delay_seconds: float = Field(default=2.0, ge=0)
    retry_max_delay_seconds: float = Field(default=30.0, ge=0)

    high_rating_threshold: int = Field(default=8, ge=0, le=10)
    isolate_recommendation_log_failures: bool = False

    worker_enabled: bool = True
    worker_queue_size: int = Field(default=1000, ge=1)
    worker_concurrency: int = Field(default=1, ge=1)
    worker_dead_letter_limit: int = Field(default=1000, ge=1)


settings = Settings()

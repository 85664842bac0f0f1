"""FastAPI application factory — entry point for the SeriLovers worker."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from app.api.routes.events import router as events_router
from app.api.routes.recommendation_logs import router as recommendation_logs_router
from app.config import settings
from app.database import async_session_factory
from app.worker import EventWorker, create_worker

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: start and stop the event worker."""
    logger.info("SeriLovers worker starting up...")
    logger.info(
        "Retry policy: %d attempts, base delay %.1fs, max delay %.1fs",
        settings.retry_max_attempts,
        settings.retry_base_delay_seconds,
        settings.retry_max_delay_seconds,
    )
    logger.info("High rating threshold: %d", settings.high_rating_threshold)
    worker: EventWorker = app.state.worker
    if settings.worker_enabled:
        await worker.start()
    else:
        logger.warning("Event worker disabled; published events queue up until the queue is full")
    yield
    if worker.running:
        await worker.stop()
    logger.info("SeriLovers worker shutting down...")


def create_app(worker: EventWorker | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="SeriLovers Worker",
        description="Recommendation tracking for episode watched and review created events",
        version="1.0.0",
        lifespan=lifespan,
    )
    application.state.worker = worker or create_worker(async_session_factory, settings)

    # ── Routes ─────────────────────────────────────
    application.include_router(events_router)
    application.include_router(recommendation_logs_router)

    # ── Health Check ───────────────────────────────
    @application.get("/health", tags=["System"])
    async def health() -> dict[str, str]:
        return {"status": "healthy", "service": "serilovers-worker"}

    return application


app = create_app()

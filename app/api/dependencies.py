"""Shared FastAPI dependencies."""

from fastapi import Request

from app.worker import EventWorker


def get_worker(request: Request) -> EventWorker:
    return request.app.state.worker

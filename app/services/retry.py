"""
Retry with exponential backoff for asynchronous units of work.

The executor is used by the event consumers but has no knowledge of events:
any zero-argument coroutine function can be wrapped.

Backoff is indexed by the attempt that just failed:
    attempt 1 fails -> wait base * 1
    attempt 2 fails -> wait base * 2
    attempt n fails -> wait min(base * 2^(n-1), max_delay)
No wait follows the last attempt.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from app.domain.exceptions import RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_RETRIES = 3
BASE_DELAY_SECONDS = 2.0
MAX_DELAY_SECONDS = 30.0


def backoff_delay(
    attempt: int,
    base_delay_seconds: float = BASE_DELAY_SECONDS,
    max_delay_seconds: float = MAX_DELAY_SECONDS,
) -> float:
    """Seconds to wait after ``attempt`` (1-based) has failed."""
    if attempt < 1:
        raise ValueError("attempt must be at least 1")
    return min(2 ** (attempt - 1) * base_delay_seconds, max_delay_seconds)


class RetryExecutor:
    """Run an async operation up to ``max_attempts`` times with backoff."""

    def __init__(
        self,
        max_attempts: int = MAX_RETRIES,
        base_delay_seconds: float = BASE_DELAY_SECONDS,
        max_delay_seconds: float = MAX_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must not be negative")
        if max_delay_seconds < base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        self.max_attempts = max_attempts
        self.base_delay_seconds = base_delay_seconds
        self.max_delay_seconds = max_delay_seconds
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        return backoff_delay(attempt, self.base_delay_seconds, self.max_delay_seconds)

    async def execute(
        self,
        op: Callable[[], Awaitable[T]],
        operation_name: str,
        cancel_event: asyncio.Event | None = None,
    ) -> T:
        """
        Await ``op()`` until it succeeds or the attempt budget is spent.

        Any ``Exception`` from ``op`` triggers a retry. ``CancelledError`` is
        never retried. Setting ``cancel_event`` aborts a pending backoff wait
        with ``CancelledError``.

        Raises:
            RetryExhaustedError: every attempt failed; the last error is the cause.
        """
        last_error: Exception | None = None

        for attempt in range(1, self.max_attempts + 1):
            logger.debug(
                "Executing %s (attempt %d/%d)", operation_name, attempt, self.max_attempts
            )
            try:
                result = await op()
            except Exception as exc:
                last_error = exc
                logger.warning(
                    "%s failed on attempt %d/%d: %s",
                    operation_name,
                    attempt,
                    self.max_attempts,
                    exc,
                    exc_info=True,
                )
                if attempt < self.max_attempts:
                    delay = self.delay_for(attempt)
                    logger.info("Retrying %s after %.1f seconds...", operation_name, delay)
                    await self._wait(delay, cancel_event, operation_name)
                continue

            if attempt > 1:
                logger.info("%s succeeded on attempt %d", operation_name, attempt)
            return result

        logger.error(
            "%s failed after %d attempts",
            operation_name,
            self.max_attempts,
            exc_info=last_error,
        )
        raise RetryExhaustedError(operation_name, self.max_attempts, last_error) from last_error

    async def _wait(
        self, delay: float, cancel_event: asyncio.Event | None, operation_name: str
    ) -> None:
        if cancel_event is None:
            await self._sleep(delay)
            return

        sleeper = asyncio.ensure_future(self._sleep(delay))
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                if not task.done():
                    task.cancel()
            await asyncio.gather(sleeper, waiter, return_exceptions=True)
        self._raise_if_cancelled(cancel_event, operation_name)
        # Surface errors raised by the sleep itself.
        sleeper.result()

    @staticmethod
    def _raise_if_cancelled(cancel_event: asyncio.Event | None, operation_name: str) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("%s cancelled during retry backoff", operation_name)
            raise asyncio.CancelledError(f"{operation_name} cancelled")

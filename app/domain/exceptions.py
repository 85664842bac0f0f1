"""Domain-level exceptions."""


class RetryExhaustedError(RuntimeError):
    """Raised when an operation still fails after its last attempt.

    The last underlying error is chained as ``__cause__`` and kept as
    ``last_error``.
    """

    def __init__(self, operation_name: str, attempts: int, last_error: BaseException | None = None) -> None:
        super().__init__(f"{operation_name} failed after {attempts} attempts")
        self.operation_name = operation_name
        self.attempts = attempts
        self.last_error = last_error


class SeriesNotFoundError(LookupError):
    def __init__(self, series_id: int) -> None:
        super().__init__(f"Series with ID {series_id} not found")
        self.series_id = series_id


class UnknownEventTypeError(LookupError):
    """No consumer is subscribed to the published event type."""


class EventQueueFullError(RuntimeError):
    """The worker queue has no room for another event."""

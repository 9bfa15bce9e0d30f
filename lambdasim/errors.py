class SchedulingError(Exception):
    """Base class for failures raised by the invocation scheduling core."""


class EmptyWorkerPool(SchedulingError):
    """Raised when an invocation has to be placed on a pool without workers."""

    def __init__(self, message: str = "worker pool is empty, cannot place invocations"):
        super().__init__(message)


class InvalidAmount(SchedulingError, ValueError):
    """Raised when a negative memory amount is appended to the timeline ledger."""

    def __init__(self, amount: float):
        self.amount = amount
        super().__init__(f"ledger amounts must be non-negative, got {amount}")


class DuplicateRequest(SchedulingError, ValueError):
    """Raised when two invocation requests share a request id."""

    def __init__(self, request_id):
        self.request_id = request_id
        super().__init__(f"duplicate invocation request id: {request_id!r}")

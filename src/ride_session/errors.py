"""Exceptions raised by the ride session engine."""


class RideSessionError(Exception):
    """Base class for ride session errors."""


class InvalidTransitionError(RideSessionError):
    """Raised when a session operation is not allowed in the current status."""

    def __init__(self, operation: str, status: str):
        self.operation = operation
        self.status = status
        super().__init__(f"Cannot {operation} while session is {status}")

"""
Error types for the order notification consumer and DLQ admin.

Per-message errors (decode failures, forced failures) are converted into
result records by the components that raise them. Queue and configuration
errors are the only ones that reach the admin transport or the process.
"""

from typing import Optional


class NotificationsError(Exception):
    """Base class for order notification errors."""

    def __init__(self, message: str, code: str = "internal_error"):
        self.code = code
        self.message = message
        super().__init__(message)

    def to_body(self) -> dict:
        """Convert to the admin API error body."""
        return {"error": self.message}


class ConfigurationError(NotificationsError):
    """Raised when required configuration is missing or invalid."""

    def __init__(self, message: str):
        super().__init__(message, code="configuration_error")


class QueueUnavailableError(NotificationsError):
    """Raised when a call to the queue service fails at the transport level."""

    def __init__(self, operation: str, cause: Optional[Exception] = None):
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"SQS {operation} failed{detail}", code="queue_unavailable")


class MessageDecodeError(NotificationsError):
    """Raised when an envelope or its inner order event cannot be decoded."""

    def __init__(self, message: str):
        super().__init__(message, code="decode_failed")


class ForcedFailureError(NotificationsError):
    """Raised when the fault injection predicate matches an order."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Simulated failure for order {order_id}", code="forced_failure")


class PublishError(NotificationsError):
    """Raised when an order event cannot be published."""

    def __init__(self, message: str):
        super().__init__(message, code="publish_failed")


def internal_error_message(error: Exception) -> str:
    """Error text for a failure that is not a NotificationsError."""
    return f"Internal error: {str(error) or type(error).__name__}"

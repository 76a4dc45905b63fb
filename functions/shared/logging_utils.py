"""
Structured JSON logging for the consumer worker and the DLQ admin.

Every line carries the SQS MessageId of the delivery being handled (empty
outside a delivery), so one message can be followed from receive through
delete, visibility reset, or DLQ retry.
"""

import json
import logging
import os
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

message_id_var: ContextVar[str] = ContextVar("message_id", default="")

DEFAULT_SERVICE_NAME = "order-notifications"

# LogRecord attributes that are not caller-supplied extras
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


@contextmanager
def message_context(message_id: str) -> Iterator[None]:
    """Tag log lines emitted inside the block with an SQS MessageId."""
    token = message_id_var.set(message_id)
    try:
        yield
    finally:
        message_id_var.reset(token)


class StructuredFormatter(logging.Formatter):
    """Renders each record as one JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "message_id": message_id_var.get(),
            "service": os.environ.get("SERVICE_NAME") or DEFAULT_SERVICE_NAME,
        }
        entry.update(
            (key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRS
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        # Decimal totals and similar fall back to str
        return json.dumps(entry, default=str)


def configure_structured_logging(level: Optional[int] = None) -> logging.Logger:
    """
    Install StructuredFormatter as the only root handler.

    Level defaults to LOG_LEVEL from the environment, then INFO. Call once
    from each entry point.
    """
    if level is None:
        level = logging.getLevelName(os.environ.get("LOG_LEVEL", "INFO").upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    for existing in list(root.handlers):
        root.removeHandler(existing)

    stream = logging.StreamHandler()
    stream.setFormatter(StructuredFormatter())
    root.addHandler(stream)
    return root


def queue_name(queue_url: str) -> str:
    """Last path segment of a queue URL."""
    return queue_url.rstrip("/").rsplit("/", 1)[-1]


def log_api_request(
    logger: logging.Logger,
    method: str,
    path: str,
    status_code: int,
    latency_ms: float,
) -> None:
    """One line per admin request, from the Lambda handlers or the local listener."""
    level = logging.ERROR if status_code >= 500 else logging.INFO
    logger.log(
        level,
        f"{method} {path} -> {status_code}",
        extra={
            "http_method": method,
            "path": path,
            "status_code": status_code,
            "latency_ms": round(latency_ms, 2),
        },
    )


def log_queue_call(
    logger: logging.Logger,
    operation: str,
    queue_url: str,
    success: bool,
    error: Optional[str] = None,
) -> None:
    """SQS call outcome: DEBUG when it worked, WARNING when it did not."""
    extra = {"operation": operation, "queue": queue_name(queue_url), "success": success}
    if success:
        logger.debug(f"SQS {operation} -> success", extra=extra)
    else:
        logger.warning(f"SQS {operation} -> failed", extra={**extra, "error": error})

"""
DLQ Admin Endpoints - Lambda handlers behind API Gateway.

GET  /dlq        -> {queueAttributes, messages}
POST /dlq/retry  -> {totalProcessed, results}

Both return 500 with {"error": <message>} when the queue is unreachable,
configuration is missing, or the operation fails unexpectedly. Per-message
failures are reported inside a 200 response and must be read from
"messages" / "results".
"""

import logging
import time
from typing import Callable, Optional

from shared.aws_clients import get_sqs
from shared.config import load_settings
from shared.errors import ConfigurationError, QueueUnavailableError, internal_error_message
from shared.logging_utils import configure_structured_logging, log_api_request
from shared.queue_client import QueueClient
from shared.response_utils import error_response, success_response
from shared.types import APIGatewayEvent, LambdaResponse

from .dlq_admin import DLQAdmin

logger = logging.getLogger(__name__)

_admin: Optional[DLQAdmin] = None


def build_admin(settings) -> DLQAdmin:
    sqs = get_sqs(region=settings.region, endpoint_url=settings.endpoint_url)
    return DLQAdmin(
        QueueClient(sqs),
        settings.queue_url,
        settings.dlq_url,
        visibility_timeout=settings.dlq_visibility_timeout,
    )


def get_admin() -> DLQAdmin:
    """Get the DLQ admin, creating it lazily on first use."""
    global _admin
    if _admin is None:
        _admin = build_admin(load_settings())
    return _admin


def reset_admin() -> None:
    """Reset the cached admin. Used in tests for clean state."""
    global _admin
    _admin = None


def _handle(method: str, path: str, operation: Callable[[DLQAdmin], dict]) -> LambdaResponse:
    start_time = time.time()

    try:
        response = success_response(operation(get_admin()))
    except (ConfigurationError, QueueUnavailableError) as e:
        logger.error(f"{method} {path} failed: {e}", extra={"error_code": e.code})
        response = error_response(e.message, status_code=500)
    except Exception as e:
        logger.exception(f"{method} {path} failed unexpectedly")
        response = error_response(internal_error_message(e), status_code=500)

    latency_ms = (time.time() - start_time) * 1000
    log_api_request(logger, method, path, response["statusCode"], latency_ms)
    return response


def list_dlq_handler(event: APIGatewayEvent, context) -> LambdaResponse:
    """Lambda handler for GET /dlq."""
    configure_structured_logging()
    return _handle("GET", "/dlq", lambda admin: admin.list_messages())


def retry_dlq_handler(event: APIGatewayEvent, context) -> LambdaResponse:
    """Lambda handler for POST /dlq/retry."""
    configure_structured_logging()
    return _handle("POST", "/dlq/retry", lambda admin: admin.retry_messages())

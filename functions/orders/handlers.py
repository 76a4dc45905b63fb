"""
Order Intake API - accepts orders and publishes OrderCreated events.

POST /orders
{
    "orderId": "order-123",
    "customerId": "customer-1",
    "items": [{"productId": "p1", "quantity": 2, "price": 29.99}]
}

201 with the accepted order, 400 when the body is not a valid order,
500 when the event cannot be published.
"""

import base64
import binascii
import logging
import os
import time
from typing import Optional

from shared.aws_clients import get_sns
from shared.errors import MessageDecodeError, PublishError
from shared.logging_utils import configure_structured_logging, log_api_request
from shared.models import decode_order_event
from shared.response_utils import error_response, success_response
from shared.types import APIGatewayEvent, LambdaResponse

from .publisher import OrderPublisher

logger = logging.getLogger(__name__)

PUBLISH_FAILED_MESSAGE = "Failed to process order"

_publisher: Optional[OrderPublisher] = None


def get_publisher() -> OrderPublisher:
    """Get the order publisher, creating it lazily on first use."""
    global _publisher
    if _publisher is None:
        _publisher = OrderPublisher(get_sns(), os.environ.get("SNS_TOPIC_ARN", ""))
    return _publisher


def reset_publisher() -> None:
    """Reset the cached publisher. Used in tests for clean state."""
    global _publisher
    _publisher = None


def _request_body(event: APIGatewayEvent) -> str:
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            raise MessageDecodeError("Request body is not valid base64")
    return body


def _create_order(event: APIGatewayEvent) -> LambdaResponse:
    try:
        order = decode_order_event(_request_body(event))
    except MessageDecodeError as e:
        logger.warning(f"Rejected order: {e}", extra={"error_code": e.code})
        return error_response(e.message, status_code=400)

    try:
        get_publisher().publish_order_created(order)
    except PublishError as e:
        logger.error(f"Failed to publish order {order.order_id}: {e}", extra={"error_code": e.code})
        return error_response(PUBLISH_FAILED_MESSAGE, status_code=500)

    return success_response(order.to_dict(), status_code=201)


def create_order_handler(event: APIGatewayEvent, context) -> LambdaResponse:
    """Lambda handler for POST /orders."""
    configure_structured_logging()
    start_time = time.time()

    response = _create_order(event)

    latency_ms = (time.time() - start_time) * 1000
    log_api_request(logger, "POST", "/orders", response["statusCode"], latency_ms)
    return response

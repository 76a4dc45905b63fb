#!/usr/bin/env python3
"""Send a test order event to the notifications queue.

Usage:
    # Order that is processed and deleted
    PYTHONPATH=functions python scripts/send_test_order.py

    # Order that fails until it is dead-lettered
    PYTHONPATH=functions python scripts/send_test_order.py --order-id fail-me

    # Envelope whose inner message is not JSON
    PYTHONPATH=functions python scripts/send_test_order.py --invalid

    # Publish through SNS instead of writing to the queue
    PYTHONPATH=functions python scripts/send_test_order.py --via-sns
"""

import argparse
import logging
import sys
import time
from decimal import Decimal

sys.path.insert(0, "functions")
from orders.publisher import OrderPublisher, build_envelope
from shared.aws_clients import get_sns, get_sqs
from shared.config import load_settings
from shared.models import OrderEvent, OrderItem

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--order-id", default=f"test-order-{int(time.time() * 1000)}")
    parser.add_argument("--customer-id", default="test-customer")
    parser.add_argument("--invalid", action="store_true", help="send 'invalid json' as the inner message")
    parser.add_argument("--via-sns", action="store_true", help="publish to SNS_TOPIC_ARN")
    args = parser.parse_args()

    settings = load_settings()
    event = OrderEvent(
        order_id=args.order_id,
        customer_id=args.customer_id,
        items=[OrderItem(product_id="test-product", quantity=2, price=Decimal("29.99"))],
        event_type="OrderCreated",
    )

    if args.via_sns:
        publisher = OrderPublisher(get_sns(settings.region, settings.endpoint_url), settings.sns_topic_arn)
        message_id = publisher.publish_order_created(event)
        logger.info(f"Published order {event.order_id} to SNS as {message_id}")
        return

    body = build_envelope("invalid json" if args.invalid else event, topic_arn=settings.sns_topic_arn)
    sqs = get_sqs(settings.region, settings.endpoint_url)
    response = sqs.send_message(QueueUrl=settings.queue_url, MessageBody=body)
    logger.info(f"Sent order {event.order_id} to {settings.queue_url} as {response['MessageId']}")


if __name__ == "__main__":
    main()

"""
Notifications worker entry point.

Usage:
    PYTHONPATH=functions python -m notifications.worker
"""

import logging
import signal
import sys

from shared.aws_clients import get_sqs
from shared.config import load_settings
from shared.errors import ConfigurationError
from shared.logging_utils import configure_structured_logging
from shared.queue_client import QueueClient

from .consumer import OrderEventConsumer, order_id_fault_injector
from .sink import FakeEmailSink

logger = logging.getLogger(__name__)


def build_consumer(settings) -> OrderEventConsumer:
    sqs = get_sqs(region=settings.region, endpoint_url=settings.endpoint_url)
    return OrderEventConsumer(
        QueueClient(sqs),
        settings.queue_url,
        FakeEmailSink(),
        fail_predicate=order_id_fault_injector(settings.fail_order_id),
        wait_time_seconds=settings.wait_time_seconds,
        visibility_timeout=settings.consumer_visibility_timeout,
        error_backoff_seconds=settings.error_backoff_seconds,
    )


def main() -> int:
    configure_structured_logging()

    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    consumer = build_consumer(settings)

    def _shutdown(signum, frame):
        logger.info(f"Received signal {signum}, stopping")
        consumer.stop()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    consumer.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())

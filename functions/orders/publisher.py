"""
Order event publisher.

Orders are published to an SNS topic that fans out to the notifications
queue. SNS wraps each event in a notification envelope whose "Message" field
is the event JSON as a string. build_envelope() produces the same body for
sending straight to the queue.
"""

import json
import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional, Union

from botocore.exceptions import BotoCoreError, ClientError

from shared.errors import PublishError
from shared.models import Envelope, OrderEvent
from shared.response_utils import dumps

logger = logging.getLogger(__name__)

ORDER_CREATED = "OrderCreated"


def build_envelope(
    message: Union[OrderEvent, str],
    topic_arn: Optional[str] = None,
    timestamp: Optional[str] = None,
) -> str:
    """
    Wrap an order event (or an arbitrary message string) in an SNS-style envelope.

    Returns:
        The queue message body as a JSON string
    """
    inner = message if isinstance(message, str) else dumps(message.to_dict())
    envelope = Envelope(
        message=inner,
        timestamp=timestamp or datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        type="Notification",
        message_id=str(uuid.uuid4()),
        topic_arn=topic_arn,
    )
    return json.dumps(envelope.to_dict())


class OrderPublisher:
    def __init__(self, sns_client, topic_arn: str):
        if not topic_arn:
            raise PublishError("SNS_TOPIC_ARN environment variable is required")
        self._sns = sns_client
        self._topic_arn = topic_arn

    def publish_order_created(self, event: OrderEvent) -> str:
        """Publish an OrderCreated event and return the SNS MessageId."""
        event = replace(event, event_type=ORDER_CREATED)

        try:
            response = self._sns.publish(
                TopicArn=self._topic_arn,
                Message=dumps(event.to_dict()),
            )
        except (ClientError, BotoCoreError) as e:
            raise PublishError(f"failed to publish message: {e}")

        message_id = response.get("MessageId", "")
        logger.info(f"Published {ORDER_CREATED} for order {event.order_id}", extra={"sns_message_id": message_id})
        return message_id

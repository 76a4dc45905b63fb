"""
Shared pytest fixtures for order notification tests.
"""

import json
import os
import sys
from decimal import Decimal

import boto3
import pytest
from moto import mock_aws

# Add functions directory to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "functions"))

MAX_RECEIVE_COUNT = 2


def pytest_configure(config):
    """Set AWS credentials before test collection."""
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
    os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
    os.environ.setdefault("AWS_REGION", "us-east-1")


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Set fake AWS credentials for all tests."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    monkeypatch.delenv("AWS_ENDPOINT_URL", raising=False)
    monkeypatch.delenv("METRICS_ENABLED", raising=False)
    monkeypatch.delenv("SNS_TOPIC_ARN", raising=False)
    monkeypatch.delenv("CLOUDWATCH_NAMESPACE", raising=False)
    monkeypatch.delenv("SERVICE_NAME", raising=False)


@pytest.fixture(autouse=True)
def reset_aws_clients():
    """Reset shared AWS client singletons between tests."""
    yield
    from shared.aws_clients import reset_clients
    from admin.handlers import reset_admin
    from orders.handlers import reset_publisher

    reset_clients()
    reset_admin()
    reset_publisher()


@pytest.fixture
def sqs_queues():
    """Mocked main queue with a redrive policy onto a DLQ.

    Yields a dict with the boto3 client and both queue URLs.
    """
    with mock_aws():
        sqs = boto3.client("sqs", region_name="us-east-1")
        dlq_url = sqs.create_queue(QueueName="order-notifications-dlq")["QueueUrl"]
        dlq_arn = sqs.get_queue_attributes(QueueUrl=dlq_url, AttributeNames=["QueueArn"])["Attributes"]["QueueArn"]
        queue_url = sqs.create_queue(
            QueueName="order-notifications",
            Attributes={
                "RedrivePolicy": json.dumps(
                    {"deadLetterTargetArn": dlq_arn, "maxReceiveCount": str(MAX_RECEIVE_COUNT)}
                ),
            },
        )["QueueUrl"]

        yield {"sqs": sqs, "queue_url": queue_url, "dlq_url": dlq_url}


@pytest.fixture
def queue_client(sqs_queues):
    from shared.queue_client import QueueClient

    return QueueClient(sqs_queues["sqs"])


@pytest.fixture
def queue_env(sqs_queues, monkeypatch):
    """Environment pointing at the mocked queues."""
    monkeypatch.setenv("SQS_QUEUE_URL", sqs_queues["queue_url"])
    monkeypatch.setenv("SQS_DLQ_URL", sqs_queues["dlq_url"])
    return sqs_queues


@pytest.fixture
def sample_order():
    """Order event as the producer serializes it."""
    return {
        "eventType": "OrderCreated",
        "orderId": "order-123",
        "customerId": "customer-1",
        "items": [
            {"productId": "p1", "quantity": 2, "price": 29.99},
            {"productId": "p2", "quantity": 1, "price": 5.5},
        ],
    }


def make_envelope(message, topic_arn="arn:aws:sns:us-east-1:123456789012:orders"):
    """Wrap an order dict (or raw string) the way SNS delivers it to SQS."""
    inner = message if isinstance(message, str) else json.dumps(message)
    return json.dumps(
        {
            "Type": "Notification",
            "MessageId": "12345",
            "TopicArn": topic_arn,
            "Message": inner,
            "Timestamp": "2024-01-15T10:00:00.000Z",
        }
    )


def make_sqs_message(body, message_id="msg-1", receipt_handle="receipt-1", receive_count="1"):
    return {
        "MessageId": message_id,
        "ReceiptHandle": receipt_handle,
        "Body": body,
        "Attributes": {"ApproximateReceiveCount": receive_count},
    }


@pytest.fixture
def expected_total():
    return Decimal("29.99") * 2 + Decimal("5.5")

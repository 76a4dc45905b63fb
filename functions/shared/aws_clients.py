"""
Lazily created boto3 clients, one per service per process.

Clients honour AWS_ENDPOINT_URL so the worker and admin can run against
LocalStack. Components never reach for these directly; entry points build a
client here and pass it in.
"""

import os
from typing import Any, Dict, Optional

_clients: Dict[str, Any] = {}


def _get_client(service: str, region: Optional[str], endpoint_url: Optional[str]):
    if service not in _clients:
        import boto3

        kwargs = {"region_name": region or os.environ.get("AWS_DEFAULT_REGION", "us-east-1")}
        endpoint_url = endpoint_url or os.environ.get("AWS_ENDPOINT_URL")
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        _clients[service] = boto3.client(service, **kwargs)
    return _clients[service]


def get_sqs(region=None, endpoint_url=None):
    return _get_client("sqs", region, endpoint_url)


def get_sns(region=None, endpoint_url=None):
    return _get_client("sns", region, endpoint_url)


def get_cloudwatch(region=None, endpoint_url=None):
    """CloudWatch client for custom metrics."""
    return _get_client("cloudwatch", region, endpoint_url)


def reset_clients():
    """Drop cached clients. Used in tests for clean state."""
    _clients.clear()

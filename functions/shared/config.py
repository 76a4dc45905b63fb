"""
Environment configuration for the consumer worker and the DLQ admin.

Values come from the process environment. A `.env.local` file is loaded
first when present (existing environment variables win).
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_ENV_FILE = ".env.local"

DEFAULT_REGION = "us-east-1"
DEFAULT_WAIT_TIME_SECONDS = 20
DEFAULT_CONSUMER_VISIBILITY_TIMEOUT = 5
DEFAULT_ERROR_BACKOFF_SECONDS = 1.0
DEFAULT_DLQ_VISIBILITY_TIMEOUT = 30
DEFAULT_FAIL_ORDER_ID = "fail-me"
DEFAULT_ADMIN_PORT = 3001

# SQS hard limit for MaxNumberOfMessages
MAX_BATCH_SIZE = 10


@dataclass(frozen=True)
class Settings:
    """Resolved runtime configuration."""

    queue_url: str
    dlq_url: str
    region: str = DEFAULT_REGION
    endpoint_url: Optional[str] = None
    wait_time_seconds: int = DEFAULT_WAIT_TIME_SECONDS
    consumer_visibility_timeout: int = DEFAULT_CONSUMER_VISIBILITY_TIMEOUT
    error_backoff_seconds: float = DEFAULT_ERROR_BACKOFF_SECONDS
    dlq_visibility_timeout: int = DEFAULT_DLQ_VISIBILITY_TIMEOUT
    fail_order_id: Optional[str] = DEFAULT_FAIL_ORDER_ID
    admin_port: int = DEFAULT_ADMIN_PORT
    sns_topic_arn: Optional[str] = None


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def load_settings(env: Optional[Mapping[str, str]] = None, env_file: Optional[str] = DEFAULT_ENV_FILE) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        env: Mapping to read instead of os.environ (tests)
        env_file: dotenv file loaded into os.environ before reading; None to skip

    Returns:
        Settings

    Raises:
        ConfigurationError: if a queue URL is missing or a value is malformed
    """
    if env is None:
        if env_file and os.path.exists(env_file):
            load_dotenv(env_file, override=False)
        env = os.environ

    queue_url = env.get("SQS_QUEUE_URL")
    if not queue_url:
        raise ConfigurationError("SQS_QUEUE_URL environment variable is required")

    dlq_url = env.get("SQS_DLQ_URL")
    if not dlq_url:
        raise ConfigurationError("SQS_DLQ_URL environment variable is required")

    # Empty FAIL_ORDER_ID disables fault injection
    fail_order_id = env.get("FAIL_ORDER_ID", DEFAULT_FAIL_ORDER_ID) or None

    return Settings(
        queue_url=queue_url,
        dlq_url=dlq_url,
        region=env.get("AWS_DEFAULT_REGION") or env.get("AWS_REGION") or DEFAULT_REGION,
        endpoint_url=env.get("AWS_ENDPOINT_URL") or None,
        wait_time_seconds=_int(env, "RECEIVE_WAIT_SECONDS", DEFAULT_WAIT_TIME_SECONDS),
        consumer_visibility_timeout=_int(env, "CONSUMER_VISIBILITY_TIMEOUT", DEFAULT_CONSUMER_VISIBILITY_TIMEOUT),
        error_backoff_seconds=_float(env, "RECEIVE_ERROR_BACKOFF_SECONDS", DEFAULT_ERROR_BACKOFF_SECONDS),
        dlq_visibility_timeout=_int(env, "DLQ_VISIBILITY_TIMEOUT", DEFAULT_DLQ_VISIBILITY_TIMEOUT),
        fail_order_id=fail_order_id,
        admin_port=_int(env, "ADMIN_PORT", DEFAULT_ADMIN_PORT),
        sns_topic_arn=env.get("SNS_TOPIC_ARN") or None,
    )

"""
JSON encoding and API Gateway responses for the DLQ admin.

Order prices and totals are Decimal; they are written as JSON numbers,
whole values as ints.
"""

import json
from decimal import Decimal
from typing import Any, Dict, Optional

JSON_HEADERS = {"Content-Type": "application/json"}


def decimal_default(obj: Any) -> Any:
    """json.dumps default= hook for Decimal values."""
    if not isinstance(obj, Decimal):
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
    return int(obj) if obj == obj.to_integral_value() else float(obj)


def dumps(data: Any) -> str:
    return json.dumps(data, default=decimal_default)


def json_response(status_code: int, body: Any, headers: Optional[Dict[str, str]] = None) -> dict:
    """API Gateway proxy response with a JSON body."""
    return {
        "statusCode": status_code,
        "headers": {**JSON_HEADERS, **(headers or {})},
        "body": dumps(body),
    }


def success_response(data: Any, status_code: int = 200) -> dict:
    return json_response(status_code, data)


def error_response(message: str, status_code: int = 500) -> dict:
    """Error response with a flat {"error": message} body."""
    return json_response(status_code, {"error": message})

"""
Local HTTP listener for the DLQ admin.

Usage:
    PYTHONPATH=functions python -m admin.server
"""

import logging
import sys
import time

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import Response

from shared.config import load_settings
from shared.errors import ConfigurationError, QueueUnavailableError, internal_error_message
from shared.logging_utils import configure_structured_logging, log_api_request
from shared.response_utils import dumps

from .dlq_admin import DLQAdmin
from .handlers import build_admin

logger = logging.getLogger(__name__)


def _json(status_code: int, body) -> Response:
    # Serialized with decimal_default so prices keep their JSON number form
    return Response(content=dumps(body), status_code=status_code, media_type="application/json")


def create_app(admin: DLQAdmin) -> FastAPI:
    app = FastAPI(title="Order Notifications DLQ Admin")

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        latency_ms = (time.time() - start_time) * 1000
        log_api_request(logger, request.method, request.url.path, response.status_code, latency_ms)
        return response

    @app.exception_handler(QueueUnavailableError)
    async def queue_unavailable(request: Request, exc: QueueUnavailableError):
        logger.error(f"{request.method} {request.url.path} failed: {exc}", extra={"error_code": exc.code})
        return _json(500, exc.to_body())

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.error(f"{request.method} {request.url.path} failed unexpectedly", exc_info=exc)
        return _json(500, {"error": internal_error_message(exc)})

    @app.get("/dlq")
    def list_dlq():
        return _json(200, admin.list_messages())

    @app.post("/dlq/retry")
    def retry_dlq():
        return _json(200, admin.retry_messages())

    @app.get("/health")
    def health():
        result = admin.health()
        return _json(503 if result["status"] == "unhealthy" else 200, result)

    return app


def main() -> int:
    configure_structured_logging()

    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    app = create_app(build_admin(settings))
    logger.info(f"DLQ admin listening on port {settings.admin_port}")
    uvicorn.run(app, host="0.0.0.0", port=settings.admin_port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())

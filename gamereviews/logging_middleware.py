"""
HTTP middleware for structured request logging.

Binds a request id into the structlog context, logs request start and
completion, and echoes the id back in the ``X-Request-ID`` header. An
exception no handler claimed is logged and answered with a JSON 500.
"""

import time
import uuid

import structlog
from fastapi import FastAPI, Request

from .errors import unexpected_error_response
from .logging_config import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def init_logging_middleware(app: FastAPI) -> None:
    """
    Register the request logging middleware on the application.

    Args:
        app: FastAPI application instance
    """

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        started = time.perf_counter()

        logger.info("request_started", method=request.method, path=request.url.path)
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                exc_info=True,
            )
            response = unexpected_error_response(exc)

        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        structlog.contextvars.clear_contextvars()
        return response

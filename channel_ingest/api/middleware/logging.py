"""Logging middleware for request/response tracking."""

import logging
import time
import uuid
from collections.abc import Callable
from typing import Any

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log method, path, status and timing.

    An incoming ``X-Request-ID`` is reused; otherwise one is generated. The id
    is echoed on the response.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Any],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"

        start_time = time.perf_counter()
        logger.info(
            "Request started: %s %s",
            method,
            path,
            extra={"request_id": request_id, "method": method, "path": path, "client_ip": client_ip},
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.exception(
                "Request failed: %s %s",
                method,
                path,
                extra={
                    "request_id": request_id,
                    "duration_ms": round(duration_ms, 2),
                    "error_type": type(exc).__name__,
                },
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id

        log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            log_level,
            "Request completed: %s %s -> %d (%.0fms)",
            method,
            path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response


def setup_logging_middleware(app: FastAPI) -> None:
    """Set up logging middleware for the application."""
    app.add_middleware(LoggingMiddleware)
    logger.info("Logging middleware initialized")


def get_request_id(request: Request) -> str:
    """Get request ID from request state or headers."""
    return getattr(request.state, "request_id", None) or request.headers.get(
        REQUEST_ID_HEADER,
        str(uuid.uuid4()),
    )

"""Middleware module for the API.

- Error handling and standardization
- Request/response logging with request ids
"""

from channel_ingest.api.middleware.error_handler import ErrorHandlerMiddleware, setup_error_handler
from channel_ingest.api.middleware.logging import LoggingMiddleware, get_request_id, setup_logging_middleware

__all__ = [
    "ErrorHandlerMiddleware",
    "setup_error_handler",
    "LoggingMiddleware",
    "setup_logging_middleware",
    "get_request_id",
]

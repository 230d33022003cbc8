"""Error handlers for standardized error responses.

Pipeline exceptions are mapped onto HTTP statuses by failure kind; everything
else becomes a generic 500 without internal details.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from channel_ingest.api.middleware.logging import get_request_id
from channel_ingest.api.models.errors import (
    FAILURE_RESPONSES,
    ErrorCodes,
    ErrorResponse,
    InternalServerErrorResponse,
    NotFoundErrorResponse,
    ValidationErrorResponse,
)
from channel_ingest.core.exceptions import ChannelSyncError, PipelineError

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware:
    """Global error handler for the FastAPI application.

    Usage:
        app = FastAPI()
        setup_error_handler(app)
    """

    def __init__(self, app: FastAPI) -> None:
        self.app = app
        self._register_exception_handlers()

    def _register_exception_handlers(self) -> None:
        self.app.add_exception_handler(Exception, self._handle_generic_exception)
        self.app.add_exception_handler(PipelineError, self._handle_pipeline_error)  # type: ignore[arg-type]
        self.app.add_exception_handler(RequestValidationError, self._handle_validation_error)  # type: ignore[arg-type]
        self.app.add_exception_handler(StarletteHTTPException, self._handle_http_exception)  # type: ignore[arg-type]

    async def _handle_pipeline_error(self, request: Request, exc: PipelineError) -> JSONResponse:
        """Map a pipeline failure kind to its HTTP status.

        A failed sync run carries its structured failure payload in ``details``.
        """
        request_id = get_request_id(request)
        status_code, error_code = FAILURE_RESPONSES.get(exc.kind, FAILURE_RESPONSES["internal"])

        details: dict[str, Any] = {"kind": exc.kind}
        error_type = "PIPELINE_ERROR"
        if isinstance(exc, ChannelSyncError):
            details = exc.failure.model_dump(mode="json")
            error_type = "SYNC_FAILED"

        logger.warning(
            "Pipeline error (%s): %s",
            exc.kind,
            exc,
            extra={"request_id": request_id, "path": request.url.path, "status_code": status_code},
        )

        error_response = ErrorResponse(
            error=error_type,
            error_code=error_code,
            message=str(exc),
            details=details,
            request_id=request_id,
        )
        return JSONResponse(status_code=status_code, content=error_response.model_dump())

    async def _handle_generic_exception(self, request: Request, exc: Exception) -> JSONResponse:
        request_id = get_request_id(request)
        logger.exception(
            "Unhandled exception",
            extra={"request_id": request_id, "method": request.method, "path": request.url.path},
        )
        error_response = InternalServerErrorResponse(
            request_id=request_id,
            details={"error_type": type(exc).__name__},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response.model_dump(),
        )

    async def _handle_validation_error(
        self,
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        request_id = get_request_id(request)
        errors = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]

        logger.info(
            "Validation error",
            extra={"request_id": request_id, "path": request.url.path, "validation_errors": errors},
        )

        error_response = ValidationErrorResponse(
            error_code=ErrorCodes.VALIDATION_ERROR,
            message="Request validation failed",
            details={"errors": errors},
            request_id=request_id,
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_response.model_dump(),
        )

    async def _handle_http_exception(
        self,
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        request_id = get_request_id(request)
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

        error_response: ErrorResponse
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            error_response = NotFoundErrorResponse(
                error_code=ErrorCodes.NOT_FOUND,
                message=detail,
                request_id=request_id,
            )
        elif exc.status_code == status.HTTP_400_BAD_REQUEST:
            error_response = ErrorResponse(
                error="BAD_REQUEST",
                error_code=ErrorCodes.INVALID_PARAMETER,
                message=detail,
                request_id=request_id,
            )
        else:
            error_response = ErrorResponse(
                error="HTTP_ERROR",
                error_code=f"HTTP_{exc.status_code}",
                message=detail,
                request_id=request_id,
            )

        logger.info(
            "HTTP %d error",
            exc.status_code,
            extra={"request_id": request_id, "path": request.url.path},
        )
        return JSONResponse(status_code=exc.status_code, content=error_response.model_dump())


def setup_error_handler(app: FastAPI) -> None:
    """Register the global exception handlers on the application."""
    ErrorHandlerMiddleware(app)
    logger.info("Error handler middleware initialized")

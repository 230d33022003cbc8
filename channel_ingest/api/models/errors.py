"""Error response models for the API.

All errors share one envelope and carry a request_id for tracing.
"""

from datetime import datetime, timezone
from typing import Any

from fastapi import status
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response model.

    Attributes:
        error: Error type identifier (e.g., "VALIDATION_ERROR", "NOT_FOUND")
        error_code: Machine-readable error code for programmatic handling
        message: Human-readable error message
        details: Additional error context (validation errors, sync failure payload)
        request_id: Unique request identifier for tracing
        timestamp: ISO 8601 timestamp of when the error occurred
    """

    error: str = Field(..., description="Error type identifier", examples=["SYNC_FAILED"])
    error_code: str = Field(..., description="Machine-readable error code", examples=["QUOTA_EXCEEDED"])
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(default=None, description="Additional error details")
    request_id: str = Field(..., description="Unique request identifier for tracing")
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="ISO 8601 timestamp of error occurrence",
    )


class ValidationErrorResponse(ErrorResponse):
    """Request body, query or path parameters failed validation."""

    error: str = Field(default="VALIDATION_ERROR", frozen=True)
    details: dict[str, Any] = Field(default_factory=dict)  # type: ignore[assignment]


class NotFoundErrorResponse(ErrorResponse):
    """A requested resource does not exist."""

    error: str = Field(default="NOT_FOUND", frozen=True)


class InternalServerErrorResponse(ErrorResponse):
    """Unexpected failure; no internal details leak."""

    error: str = Field(default="INTERNAL_SERVER_ERROR", frozen=True)
    error_code: str = Field(default="INTERNAL_ERROR", frozen=True)
    message: str = Field(default="An unexpected error occurred. Please try again later.")


class ErrorCodes:
    """Standardized error codes for the API."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_PARAMETER = "INVALID_PARAMETER"

    NOT_FOUND = "NOT_FOUND"
    CHANNEL_NOT_FOUND = "CHANNEL_NOT_FOUND"

    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    CONFIGURATION_MISSING = "CONFIGURATION_MISSING"
    PERSISTENCE_CONFLICT = "PERSISTENCE_CONFLICT"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Failure kind -> (HTTP status, error code)
FAILURE_RESPONSES: dict[str, tuple[int, str]] = {
    "quota_exceeded": (status.HTTP_429_TOO_MANY_REQUESTS, ErrorCodes.QUOTA_EXCEEDED),
    "not_found": (status.HTTP_404_NOT_FOUND, ErrorCodes.NOT_FOUND),
    "configuration_missing": (status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCodes.CONFIGURATION_MISSING),
    "persistence_conflict": (status.HTTP_409_CONFLICT, ErrorCodes.PERSISTENCE_CONFLICT),
    "upstream_failure": (status.HTTP_502_BAD_GATEWAY, ErrorCodes.EXTERNAL_SERVICE_ERROR),
    "internal": (status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCodes.INTERNAL_ERROR),
}

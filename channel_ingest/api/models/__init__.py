"""API request / response models."""

from channel_ingest.api.models.errors import (
    FAILURE_RESPONSES,
    ErrorCodes,
    ErrorResponse,
    InternalServerErrorResponse,
    NotFoundErrorResponse,
    ValidationErrorResponse,
)
from channel_ingest.api.models.requests import AddChannelRequest, ChannelStats, Pagination, VideoListResponse

__all__ = [
    "FAILURE_RESPONSES",
    "AddChannelRequest",
    "ChannelStats",
    "ErrorCodes",
    "ErrorResponse",
    "InternalServerErrorResponse",
    "NotFoundErrorResponse",
    "Pagination",
    "ValidationErrorResponse",
    "VideoListResponse",
]

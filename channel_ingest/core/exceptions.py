"""Custom exceptions for the channel ingestion pipeline."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from channel_ingest.channel.schemas import SyncFailure


class PipelineError(Exception):
    """Base exception for pipeline errors."""

    kind = "internal"


class ConfigurationMissingError(PipelineError):
    """No credential available for the upstream service."""

    kind = "configuration_missing"


class UpstreamError(PipelineError):
    """Upstream service returned a non-success response."""

    kind = "upstream_failure"

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class QuotaExceededError(UpstreamError):
    """Upstream quota exhausted (or the API key was rejected)."""

    kind = "quota_exceeded"


class NotFoundError(UpstreamError):
    """Requested channel or catalog does not exist upstream."""

    kind = "not_found"


class TranscriptParseError(PipelineError):
    """Caption payload could not be parsed.

    Parsers recover from this internally; it never reaches callers.
    """


class DatabaseError(PipelineError):
    """Database operation failed."""


class PersistenceConflictError(DatabaseError):
    """Duplicate key or missing parent row on insert."""

    kind = "persistence_conflict"


class ChannelSyncError(PipelineError):
    """A sync run ended in the ``error`` state.

    Carries the structured failure payload that was mirrored onto the channel.
    """

    def __init__(self, failure: "SyncFailure") -> None:
        super().__init__(failure.message)
        self.failure = failure
        self.kind = failure.kind

"""Core package for the channel ingestion pipeline."""

from channel_ingest.core.config import Settings, get_settings
from channel_ingest.core.http_session import close_all_clients, get_client
from channel_ingest.core.logging_config import (
    get_logger,
    log_channel_sync_event,
    setup_logging,
)

__all__ = [
    "Settings",
    "get_settings",
    # Logging
    "setup_logging",
    "get_logger",
    "log_channel_sync_event",
    # HTTP
    "get_client",
    "close_all_clients",
]

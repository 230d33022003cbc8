"""HTTP API for channel ingestion."""

from channel_ingest.api.app import create_app

__all__ = ["create_app"]

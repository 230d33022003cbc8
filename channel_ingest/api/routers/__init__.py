"""API routers module."""

from channel_ingest.api.routers.channels import router as channels_router
from channel_ingest.api.routers.health import router as health_router

__all__ = [
    "channels_router",
    "health_router",
]

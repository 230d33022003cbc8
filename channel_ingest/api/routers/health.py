"""Health check endpoint."""

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter

from channel_ingest.core.config import get_settings
from channel_ingest.core.constants import APP_VERSION
from channel_ingest.database import get_db_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def check_database_health() -> dict[str, Any]:
    """Ping MongoDB and report latency."""
    result: dict[str, Any] = {"status": "unhealthy", "latency_ms": 0, "available": False}

    client = get_db_manager().client
    if client is None:
        result["error"] = "No database client"
        return result

    try:
        start = time.perf_counter()
        await client.admin.command("ping")
        result["latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
        result["status"] = "healthy"
        result["available"] = True
    except Exception as e:
        result["error"] = str(e)
        logger.warning("Database health check failed: %s", e)

    return result


@router.get(
    "/health",
    response_model=dict[str, Any],
    summary="Health check",
    description="Reports API liveness, database reachability and whether a YouTube API key is configured.",
    operation_id="health_check",
)
async def health_check() -> dict[str, Any]:
    database = await check_database_health()
    youtube_configured = get_settings().has_youtube_credentials
    healthy = database["available"] and youtube_configured

    return {
        "status": "healthy" if healthy else "degraded",
        "version": APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": {
            "database": database,
            "youtube_api": {"configured": youtube_configured},
        },
    }

"""FastAPI application factory.

- Error handling and request logging middleware
- Channel and health routers
- MongoDB index setup and shared HTTP client cleanup in the lifespan
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from channel_ingest.api.middleware import setup_error_handler, setup_logging_middleware
from channel_ingest.api.routers import channels_router, health_router
from channel_ingest.core.constants import API_TAGS, API_V1_PREFIX, APP_DESCRIPTION, APP_NAME, APP_VERSION
from channel_ingest.core.http_session import close_all_clients
from channel_ingest.database import get_db_manager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create indexes on startup; close database and HTTP clients on shutdown."""
    logger.info("Starting %s v%s", APP_NAME, APP_VERSION)

    db_manager = get_db_manager()

    try:
        await db_manager.init_indexes()
        logger.info("Database indexes initialized")
        yield
    except Exception as e:
        logger.exception("Startup failed: %s", e)
        raise
    finally:
        logger.info("Shutting down %s", APP_NAME)
        await close_all_clients()
        await db_manager.close()
        logger.info("Database connection closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=APP_NAME,
        description=APP_DESCRIPTION,
        version=APP_VERSION,
        lifespan=lifespan,
        openapi_tags=API_TAGS,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_logging_middleware(app)
    setup_error_handler(app)

    app.include_router(channels_router, prefix=API_V1_PREFIX)
    app.include_router(health_router)

    logger.info("Application created successfully")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "channel_ingest.api.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )

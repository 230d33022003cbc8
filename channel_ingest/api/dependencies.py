"""FastAPI dependencies for the API module."""

from channel_ingest.channel.youtube_client import YouTubeDataClient
from channel_ingest.core.config import Settings, get_settings
from channel_ingest.database.manager import MongoDBManager, get_db_manager


def get_settings_dep() -> Settings:
    """Dependency to get application settings."""
    return get_settings()


async def get_db_manager_dep() -> MongoDBManager:
    """Dependency to get the initialized database manager."""
    db_manager = get_db_manager()
    await db_manager.initialize()
    return db_manager


def get_youtube_client() -> YouTubeDataClient:
    """Dependency to get a YouTube Data API client.

    Raises:
        ConfigurationMissingError: If no API key is configured
    """
    return YouTubeDataClient(settings=get_settings())

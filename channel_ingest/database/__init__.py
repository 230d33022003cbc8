"""Database module for MongoDB operations.

Usage:
    # Context manager (recommended)
    async with MongoDBManager() as db:
        await db.insert_videos(...)

    # Manual lifecycle
    db = MongoDBManager()
    try:
        await db.initialize()
        await db.list_channels()
    finally:
        await db.close()
"""

from channel_ingest.database.manager import MongoDBManager, get_db_manager, get_db_manager_context

__all__ = [
    "MongoDBManager",
    "get_db_manager",
    "get_db_manager_context",
]

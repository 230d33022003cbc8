"""MongoDB database manager.

This module handles all MongoDB connection management and operations for
channels, ingested videos and recompute signals.
"""

import statistics
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import BulkWriteError, DuplicateKeyError, PyMongoError

from channel_ingest.channel.schemas import ChannelDocument, IngestedVideo, InsertedSummary, SyncStatus
from channel_ingest.core.config import Settings, get_settings
from channel_ingest.core.constants import (
    ABSOLUTE_TIER_FLOOR,
    ABSOLUTE_TIERS,
    CHANNEL_STAR_SCORE,
    FULL_INSERT_FIELDS,
    MINIMAL_INSERT_FIELDS,
    RELATIVE_TIER_FLOOR,
    RELATIVE_TIERS,
    SYNC_STATUS_COMPLETED,
    SYNC_STATUS_ERROR,
    SYNC_STATUS_SYNCING,
)
from channel_ingest.core.exceptions import DatabaseError, PersistenceConflictError
from channel_ingest.core.logging_config import get_logger

logger = get_logger(__name__)

DUPLICATE_KEY_CODE = 11000
DUPLICATE_MESSAGE = "Duplicate video entries detected. Please try clearing the channel data first."
MISSING_CHANNEL_MESSAGE = "Foreign key constraint violation. The channel may not exist in the database."


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def determine_absolute_tier(score: float) -> str:
    """Bucket an absolute performance score (0-100)."""
    for floor, tier in ABSOLUTE_TIERS:
        if score >= floor:
            return tier
    return ABSOLUTE_TIER_FLOOR


def determine_relative_tier(score: float) -> str:
    """Bucket a channel-relative performance score (0-100)."""
    for floor, tier in RELATIVE_TIERS:
        if score >= floor:
            return tier
    return RELATIVE_TIER_FLOOR


def with_performance_tiers(doc: dict[str, Any]) -> dict[str, Any]:
    """Add score / tier fields derived from ``performance_metrics`` when present."""
    metrics = doc.get("performance_metrics")
    if not metrics:
        return doc
    absolute = metrics.get("absolute_score") or 0
    relative = metrics.get("relative_score") or 0
    doc["absolute_score"] = absolute
    doc["relative_score"] = relative
    doc["absolute_tier"] = determine_absolute_tier(absolute)
    doc["relative_tier"] = determine_relative_tier(relative)
    doc["relative_ratio"] = metrics.get("relative_view_ratio")
    return doc


def _strip_object_id(doc: dict[str, Any]) -> dict[str, Any]:
    doc.pop("_id", None)
    return doc


def _insert_error(error: PyMongoError) -> DatabaseError:
    """Translate an insert failure into the pipeline error hierarchy."""
    if isinstance(error, DuplicateKeyError):
        return PersistenceConflictError(DUPLICATE_MESSAGE)
    if isinstance(error, BulkWriteError):
        write_errors = error.details.get("writeErrors", []) if error.details else []
        if any(err.get("code") == DUPLICATE_KEY_CODE for err in write_errors):
            return PersistenceConflictError(DUPLICATE_MESSAGE)
    return DatabaseError(f"Database insertion failed: {error}")


class MongoDBManager:
    """Manage MongoDB operations for the ingestion pipeline.

    Usage:
        # Context manager (recommended)
        async with MongoDBManager() as db:
            await db.insert_videos(...)

        # Manual lifecycle management
        db = MongoDBManager()
        try:
            await db.insert_videos(...)
        finally:
            await db.close()
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.client: AsyncIOMotorClient | None = None
        self.db: AsyncIOMotorDatabase | None = None
        self.channels: Any | None = None
        self.videos: Any | None = None
        self.recompute_requests: Any | None = None
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize MongoDB connection."""
        if self._initialized:
            return

        self.client = AsyncIOMotorClient(self.settings.mongodb_url)
        self.db = self.client[self.settings.mongodb_database]
        self.channels = self.db.channels
        self.videos = self.db.videos
        self.recompute_requests = self.db.recompute_requests
        self._initialized = True

    async def close(self) -> None:
        """Close MongoDB connection."""
        if self.client and self._initialized:
            self.client.close()
            self._initialized = False

    async def __aenter__(self) -> "MongoDBManager":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def init_indexes(self) -> None:
        """Initialize database indexes."""
        await self.initialize()

        await self.channels.create_index("id", unique=True)
        await self.channels.create_index("channel_id")

        await self.videos.create_index(
            [("channel_id", ASCENDING), ("video_id", ASCENDING)], unique=True
        )
        await self.videos.create_index([("published_at", DESCENDING)])
        await self.videos.create_index("id")

        await self.recompute_requests.create_index("channel_id")

    # Channel operations

    async def save_channel(self, channel_doc: ChannelDocument) -> str:
        """Insert or update a channel keyed by its YouTube channel id.

        An already tracked channel keeps its internal id and tracking date.

        Returns:
            Internal channel id
        """
        await self.initialize()
        existing = await self.channels.find_one({"channel_id": channel_doc.channel_id})
        if existing:
            channel_doc = channel_doc.model_copy(
                update={
                    "id": existing["id"],
                    "scraping_status": existing.get("scraping_status", channel_doc.scraping_status),
                    "scraping_error": existing.get("scraping_error"),
                }
            )

        doc = channel_doc.model_dump_for_mongo()
        if existing:
            doc["tracked_since"] = existing.get("tracked_since", doc["tracked_since"])
            doc["last_scraped_at"] = existing.get("last_scraped_at")
        doc["updated_at"] = _now_iso()

        await self.channels.replace_one({"channel_id": channel_doc.channel_id}, doc, upsert=True)
        return channel_doc.id

    async def get_channel(self, channel_id: str) -> ChannelDocument | None:
        """Retrieve a channel by internal id."""
        await self.initialize()
        doc = await self.channels.find_one({"id": channel_id})
        if doc is None:
            return None
        return ChannelDocument.model_validate(_strip_object_id(doc))

    async def list_channels(self, limit: int = 100) -> list[ChannelDocument]:
        """List tracked channels, most recently tracked first."""
        await self.initialize()
        cursor = self.channels.find({}).sort("tracked_since", DESCENDING).limit(limit)
        docs = await cursor.to_list(length=limit)
        return [ChannelDocument.model_validate(_strip_object_id(doc)) for doc in docs]

    async def update_channel_status(
        self,
        channel_id: str,
        status: SyncStatus,
        error_message: str | None = None,
    ) -> None:
        """Record a sync state transition on the channel."""
        await self.initialize()
        update: dict[str, Any] = {"scraping_status": status, "updated_at": _now_iso()}
        if status == SYNC_STATUS_SYNCING:
            update["last_scraped_at"] = _now_iso()
        elif status == SYNC_STATUS_COMPLETED:
            update["scraping_error"] = None
        elif status == SYNC_STATUS_ERROR:
            update["scraping_error"] = error_message

        await self.channels.update_one({"id": channel_id}, {"$set": update})

    # Video operations

    async def delete_all_for_channel(self, channel_id: str) -> int:
        """Delete every stored video of a channel."""
        await self.initialize()
        try:
            result = await self.videos.delete_many({"channel_id": channel_id})
        except PyMongoError as e:
            raise DatabaseError(f"Failed to delete existing videos: {e}") from e
        return result.deleted_count

    async def existing_video_ids(self, channel_id: str) -> set[str]:
        """Return the YouTube video ids already stored for a channel."""
        await self.initialize()
        cursor = self.videos.find({"channel_id": channel_id}, {"video_id": 1, "_id": 0})
        docs = await cursor.to_list(length=None)
        return {doc["video_id"] for doc in docs}

    async def insert_videos(
        self,
        videos: list[IngestedVideo],
        minimal: bool = False,
    ) -> list[InsertedSummary]:
        """Insert videos and return a summary per inserted row.

        Args:
            videos: Videos to insert
            minimal: Return only the minimal summary fields (large batches)

        Raises:
            PersistenceConflictError: Duplicate (channel, video) or unknown channel
            DatabaseError: Any other database failure
        """
        await self.initialize()
        if not videos:
            return []

        for channel_id in {video.channel_id for video in videos}:
            if not await self.channels.count_documents({"id": channel_id}, limit=1):
                raise PersistenceConflictError(MISSING_CHANNEL_MESSAGE)

        docs = []
        for video in videos:
            doc = video.model_dump_for_mongo()
            doc["id"] = uuid.uuid4().hex
            doc["performance_score"] = None
            doc["is_high_performing"] = False
            docs.append(doc)

        try:
            await self.videos.insert_many(docs, ordered=True)
        except PyMongoError as e:
            await self._discard_inserted(docs)
            raise _insert_error(e) from e

        fields = MINIMAL_INSERT_FIELDS if minimal else FULL_INSERT_FIELDS
        logger.info("Inserted %d videos (minimal=%s)", len(docs), minimal)
        return [InsertedSummary(**{field: doc[field] for field in fields}) for doc in docs]

    async def _discard_inserted(self, docs: list[dict[str, Any]]) -> None:
        """Remove the rows of a failed batch that did get written.

        ``insert_many`` stops at the first failing document but keeps the
        ones before it; a failed batch must leave nothing behind.
        """
        ids = [doc["id"] for doc in docs]
        try:
            result = await self.videos.delete_many({"id": {"$in": ids}})
        except PyMongoError as e:
            logger.error("Failed to roll back partial video insert: %s", e)
            return
        if result.deleted_count:
            logger.warning("Rolled back %d videos from a failed insert", result.deleted_count)

    async def trigger_recompute(self, channel_id: str) -> None:
        """Queue a performance-score recompute for a channel.

        Fire-and-forget: an external worker consumes ``recompute_requests``.
        """
        await self.initialize()
        await self.recompute_requests.insert_one(
            {"channel_id": channel_id, "status": "pending", "requested_at": _now_iso()}
        )
        logger.info("Queued performance recompute for channel %s", channel_id)

    async def count_videos(self, channel_id: str, is_high_performing: bool | None = None) -> int:
        await self.initialize()
        query: dict[str, Any] = {"channel_id": channel_id}
        if is_high_performing is not None:
            query["is_high_performing"] = is_high_performing
        return await self.videos.count_documents(query)

    async def list_videos(
        self,
        channel_id: str,
        page: int = 1,
        limit: int = 50,
        is_high_performing: bool | None = None,
    ) -> list[dict[str, Any]]:
        """List a channel's videos, newest first, with performance tiers.

        Args:
            channel_id: Internal channel id
            page: 1-based page number
            limit: Page size
            is_high_performing: Optional filter on the high-performing flag

        Returns:
            List of video documents
        """
        await self.initialize()
        query: dict[str, Any] = {"channel_id": channel_id}
        if is_high_performing is not None:
            query["is_high_performing"] = is_high_performing

        skip = (max(page, 1) - 1) * limit
        cursor = self.videos.find(query).sort("published_at", DESCENDING).skip(skip).limit(limit)
        docs = await cursor.to_list(length=limit)
        return [with_performance_tiers(_strip_object_id(doc)) for doc in docs]

    async def channel_stats(self, channel_id: str) -> dict[str, Any] | None:
        """Aggregate view / engagement statistics for a channel.

        Returns:
            Stats dict, or None when the channel has no videos
        """
        await self.initialize()
        cursor = self.videos.find(
            {"channel_id": channel_id, "view_count": {"$ne": None}},
            {"view_count": 1, "is_high_performing": 1, "performance_metrics": 1, "_id": 0},
        )
        docs = await cursor.to_list(length=None)
        if not docs:
            return None

        views = [doc["view_count"] for doc in docs if doc.get("view_count", 0) > 0]
        sorted_views = sorted(views)
        with_metrics = [doc["performance_metrics"] for doc in docs if doc.get("performance_metrics")]
        engagement = [m.get("channel_avg_engagement") or 0 for m in with_metrics]
        engagement = [e for e in engagement if e > 0]

        return {
            "avg_views": round(statistics.fmean(views)) if views else 0,
            "median_views": sorted_views[len(sorted_views) // 2] if sorted_views else 0,
            "avg_engagement": round(statistics.fmean(engagement), 2) if engagement else 0,
            "total_videos": len(docs),
            "high_performing_count": sum(1 for doc in docs if doc.get("is_high_performing")),
            "channel_star_count": sum(
                1 for m in with_metrics if (m.get("relative_score") or 0) >= CHANNEL_STAR_SCORE
            ),
        }


# Singleton instance for application-wide use
_db_manager: MongoDBManager | None = None


def get_db_manager() -> MongoDBManager:
    """Get or create the global database manager instance."""
    global _db_manager
    if _db_manager is None:
        _db_manager = MongoDBManager()
    return _db_manager


@asynccontextmanager
async def get_db_manager_context() -> AsyncGenerator[MongoDBManager, None]:
    """Get database manager with proper lifecycle management.

    Usage:
        async with get_db_manager_context() as db:
            await db.list_channels()

    Yields:
        MongoDBManager instance with initialized connection
    """
    db = MongoDBManager()
    try:
        await db.initialize()
        yield db
    finally:
        await db.close()

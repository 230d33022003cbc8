"""Pydantic schemas for channel ingestion."""

import uuid
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

SyncStatus = Literal["idle", "syncing", "completed", "error"]
SyncPolicy = Literal["full", "incremental"]
VideoType = Literal["short", "regular", "live"]
FailureKind = Literal[
    "quota_exceeded",
    "not_found",
    "configuration_missing",
    "persistence_conflict",
    "upstream_failure",
    "internal",
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChannelDocument(BaseModel):
    """Channel document for MongoDB storage."""

    id: str
    channel_id: str
    channel_name: str
    channel_handle: str | None = None
    subscriber_count: int = 0
    video_count: int = 0
    avatar_url: str = ""
    scraping_status: SyncStatus = "idle"
    scraping_error: str | None = None
    last_scraped_at: datetime | None = None
    tracked_since: datetime = Field(default_factory=_utcnow)

    @staticmethod
    def new_id() -> str:
        return uuid.uuid4().hex

    def model_dump_for_mongo(self) -> dict[str, Any]:
        """Convert to dict suitable for MongoDB storage."""
        data = self.model_dump()
        data["tracked_since"] = self.tracked_since.isoformat()
        if self.last_scraped_at:
            data["last_scraped_at"] = self.last_scraped_at.isoformat()
        return data


class ChannelInfo(BaseModel):
    """Channel metadata as reported by the channels endpoint."""

    channel_id: str
    name: str
    description: str = ""
    subscriber_count: int = 0
    video_count: int = 0
    avatar_url: str = ""

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "ChannelInfo":
        snippet = item.get("snippet") or {}
        statistics = item.get("statistics") or {}
        thumbnails = snippet.get("thumbnails") or {}
        avatar = (thumbnails.get("high") or {}).get("url") or (
            thumbnails.get("default") or {}
        ).get("url")
        return cls(
            channel_id=item["id"],
            name=snippet.get("title") or item["id"],
            description=snippet.get("description") or "",
            subscriber_count=_to_int(statistics.get("subscriberCount")),
            video_count=_to_int(statistics.get("videoCount")),
            avatar_url=avatar or "",
        )


class CatalogItem(BaseModel):
    """Stub of one uploaded video as listed in the uploads catalog."""

    video_id: str
    title: str = ""
    published_at: str | None = None


class CatalogPage(BaseModel):
    """One page of the uploads catalog."""

    items: list[CatalogItem] = Field(default_factory=list)
    next_page_token: str | None = None


class VideoDetail(BaseModel):
    """Enriched metadata for one video, as returned by the details endpoint."""

    video_id: str
    title: str = ""
    description: str = ""
    thumbnail_url: str = ""
    duration_code: str | None = None
    published_at: str | None = None
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    tags: list[str] = Field(default_factory=list)
    category: str = ""
    default_language: str | None = None
    live_broadcast_content: str | None = None

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "VideoDetail":
        """Build from a ``videos.list`` item (snippet, statistics, contentDetails)."""
        snippet = item.get("snippet") or {}
        statistics = item.get("statistics") or {}
        content = item.get("contentDetails") or {}
        thumbnails = snippet.get("thumbnails") or {}
        thumbnail = (thumbnails.get("high") or {}).get("url") or (
            thumbnails.get("default") or {}
        ).get("url")

        return cls(
            video_id=item["id"],
            title=snippet.get("title") or "",
            description=snippet.get("description") or "",
            thumbnail_url=thumbnail or "",
            duration_code=content.get("duration"),
            published_at=snippet.get("publishedAt"),
            view_count=_to_int(statistics.get("viewCount")),
            like_count=_to_int(statistics.get("likeCount")),
            comment_count=_to_int(statistics.get("commentCount")),
            tags=snippet.get("tags") or [],
            category=snippet.get("categoryId") or "",
            default_language=snippet.get("defaultLanguage"),
            live_broadcast_content=snippet.get("liveBroadcastContent"),
        )


def _to_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class CaptionTrack(BaseModel):
    """One caption track listed for a video."""

    language: str
    track_kind: str = "standard"

    @property
    def is_auto_generated(self) -> bool:
        return self.track_kind.lower() == "asr"


class TranscriptResult(BaseModel):
    """Outcome of a transcript lookup for one video."""

    video_id: str
    transcript: str = ""
    has_transcript: bool = False
    language: str | None = None

    @classmethod
    def empty(cls, video_id: str) -> "TranscriptResult":
        return cls(video_id=video_id)


class IngestedVideo(BaseModel):
    """Video row persisted per (channel, video_id)."""

    channel_id: str
    video_id: str
    title: str
    description: str = ""
    thumbnail_url: str = ""
    duration: str = "0:00"
    duration_seconds: int = 0
    published_at: str
    language: str = "en"
    category: str = ""
    tags: list[str] = Field(default_factory=list)
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    video_type: VideoType = "regular"
    transcript: str = ""
    has_transcript: bool = False
    transcript_language: str | None = None

    def model_dump_for_mongo(self) -> dict[str, Any]:
        """Convert to dict suitable for MongoDB storage."""
        data = self.model_dump()
        data["created_at"] = _utcnow().isoformat()
        return data


class InsertedSummary(BaseModel):
    """Fields echoed back by an insert."""

    id: str
    video_id: str
    title: str
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    performance_score: float | None = None
    is_high_performing: bool | None = None


class SyncOptions(BaseModel):
    """Caller-facing options for one sync run."""

    max_videos: int | None = Field(
        default=None,
        description="Maximum videos to ingest; 9999 means all available",
        ge=0,
    )
    include_shorts: bool = Field(default=False, description="Keep short-form videos")
    include_transcripts: bool = Field(default=False, description="Fetch captions")
    sync_mode: SyncPolicy = Field(default="incremental", description="full or incremental")


class SyncResult(BaseModel):
    """Result of a successful sync run."""

    run_id: str
    channel_id: str
    sync_mode: SyncPolicy
    videos_listed: int
    videos_fetched: int
    videos_filtered: int
    videos_inserted: int
    degraded_insert: bool = False
    message: str
    inserted: list[InsertedSummary] = Field(default_factory=list)
    duration_ms: int
    completed_at: datetime = Field(default_factory=_utcnow)


class SyncFailure(BaseModel):
    """Structured failure payload of a sync run."""

    run_id: str
    channel_id: str
    kind: FailureKind
    message: str
    duration_ms: int
    failed_at: datetime = Field(default_factory=_utcnow)

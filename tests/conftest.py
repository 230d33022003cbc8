"""Pytest fixtures and fakes for the ingestion pipeline.

All component tests run without network or database access:
- FakeCatalogSource / FakeCaptionSource stand in for the YouTube Data API
- FakeVideoStore stands in for MongoDB
- RecordingSleep records every delay instead of waiting
"""

from typing import Any

import pytest

from channel_ingest.channel.schemas import (
    CaptionTrack,
    CatalogItem,
    CatalogPage,
    ChannelDocument,
    IngestedVideo,
    InsertedSummary,
    VideoDetail,
)
from channel_ingest.core.config import Settings
from channel_ingest.core.exceptions import NotFoundError, UpstreamError


# =============================================================================
# Fakes
# =============================================================================


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeCatalogSource:
    """In-memory uploads catalog with details keyed by video id."""

    def __init__(
        self,
        details: list[VideoDetail] | None = None,
        uploads_id: str = "UU_uploads",
        page_size: int = 50,
    ) -> None:
        self.details = {d.video_id: d for d in details or []}
        self.order = [d.video_id for d in details or []]
        self.uploads_id = uploads_id
        self.page_size = page_size
        self.page_requests: list[str | None] = []
        self.detail_requests: list[list[str]] = []
        self.uploads_error: Exception | None = None
        self.page_error: Exception | None = None
        self.detail_errors: dict[int, Exception] = {}

    async def get_uploads_playlist_id(self, channel_id: str) -> str:
        if self.uploads_error:
            raise self.uploads_error
        return self.uploads_id

    async def list_page(
        self,
        container_id: str,
        page_token: str | None = None,
        page_size: int = 50,
    ) -> CatalogPage:
        self.page_requests.append(page_token)
        if self.page_error:
            raise self.page_error
        if container_id != self.uploads_id:
            raise NotFoundError("Uploads playlist not found")

        start = int(page_token or 0)
        ids = self.order[start : start + page_size]
        next_start = start + page_size
        return CatalogPage(
            items=[CatalogItem(video_id=video_id) for video_id in ids],
            next_page_token=str(next_start) if next_start < len(self.order) else None,
        )

    async def get_details(self, video_ids: list[str]) -> list[VideoDetail]:
        index = len(self.detail_requests)
        self.detail_requests.append(list(video_ids))
        if index in self.detail_errors:
            raise self.detail_errors[index]
        return [self.details[v] for v in video_ids if v in self.details]


class FakeCaptionSource:
    """Caption source with configurable tracks and per-(language, fmt) payloads."""

    def __init__(
        self,
        tracks: dict[str, list[CaptionTrack]] | None = None,
        payloads: dict[tuple[str, str, str], Any] | None = None,
    ) -> None:
        self.tracks = tracks or {}
        self.payloads = payloads or {}
        self.list_calls: list[str] = []
        self.payload_calls: list[tuple[str, str, str, int]] = []
        self.list_error: Exception | None = None

    async def list_caption_tracks(self, video_id: str) -> list[CaptionTrack]:
        self.list_calls.append(video_id)
        if self.list_error:
            raise self.list_error
        return self.tracks.get(video_id, [])

    async def get_caption_payload(self, video_id, language, endpoint, attempt=1) -> str:
        self.payload_calls.append((video_id, language, endpoint.fmt, attempt))
        payload = self.payloads.get((video_id, language, endpoint.fmt))
        if payload is None:
            raise UpstreamError("HTTP 404: Not Found", status_code=404)
        if isinstance(payload, Exception):
            raise payload
        return payload


class FakeVideoStore:
    """In-memory video store implementing the persistence operations."""

    def __init__(self, existing: dict[str, list[str]] | None = None) -> None:
        self.rows: dict[str, dict[str, IngestedVideo | None]] = {
            channel_id: {video_id: None for video_id in ids}
            for channel_id, ids in (existing or {}).items()
        }
        self.status_updates: list[tuple[str, str, str | None]] = []
        self.insert_calls: list[tuple[int, bool]] = []
        self.recompute_calls: list[str] = []
        self.deleted: list[str] = []
        self.recompute_error: Exception | None = None
        self.status_error: Exception | None = None
        self.insert_error: Exception | None = None
        self.channels: dict[str, ChannelDocument] = {}

    def stored_ids(self, channel_id: str) -> set[str]:
        return set(self.rows.get(channel_id, {}))

    async def get_channel(self, channel_id: str) -> ChannelDocument | None:
        return self.channels.get(channel_id)

    async def delete_all_for_channel(self, channel_id: str) -> int:
        self.deleted.append(channel_id)
        removed = len(self.rows.get(channel_id, {}))
        self.rows[channel_id] = {}
        return removed

    async def existing_video_ids(self, channel_id: str) -> set[str]:
        return self.stored_ids(channel_id)

    async def insert_videos(self, videos: list[IngestedVideo], minimal: bool = False) -> list[InsertedSummary]:
        self.insert_calls.append((len(videos), minimal))
        if self.insert_error:
            raise self.insert_error
        summaries = []
        for video in videos:
            self.rows.setdefault(video.channel_id, {})[video.video_id] = video
            summaries.append(
                InsertedSummary(
                    id=f"row-{video.video_id}",
                    video_id=video.video_id,
                    title=video.title,
                    view_count=video.view_count,
                    performance_score=None if minimal else 0.0,
                    is_high_performing=None if minimal else False,
                )
            )
        return summaries

    async def trigger_recompute(self, channel_id: str) -> None:
        self.recompute_calls.append(channel_id)
        if self.recompute_error:
            raise self.recompute_error

    async def update_channel_status(self, channel_id, status, error_message=None) -> None:
        self.status_updates.append((channel_id, status, error_message))
        if self.status_error:
            raise self.status_error


# =============================================================================
# Builders
# =============================================================================


def make_detail(video_id: str, **overrides: Any) -> VideoDetail:
    """Build a regular-length video detail."""
    values: dict[str, Any] = {
        "video_id": video_id,
        "title": f"Video {video_id}",
        "description": "A long-form upload",
        "duration_code": "PT10M5S",
        "published_at": "2024-01-15T10:30:00Z",
        "view_count": 1000,
        "like_count": 50,
        "comment_count": 5,
        "live_broadcast_content": "none",
    }
    values.update(overrides)
    return VideoDetail(**values)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults, isolated from the environment's API key."""
    return Settings(youtube_api_key="test-key", _env_file=None)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def channel() -> ChannelDocument:
    return ChannelDocument(id="chan-1", channel_id="UC1234567890123456789012", channel_name="Test Channel")


@pytest.fixture
def store(channel: ChannelDocument) -> FakeVideoStore:
    fake = FakeVideoStore()
    fake.channels[channel.id] = channel
    return fake

"""Pydantic models for API requests and responses."""

from typing import Any

from pydantic import BaseModel, Field

from channel_ingest.channel.schemas import ChannelDocument


class AddChannelRequest(BaseModel):
    """Request model for tracking a new channel."""

    reference: str = Field(
        ...,
        min_length=1,
        description="Channel handle, channel id or channel URL",
        examples=["@GoogleDevelopers", "https://www.youtube.com/channel/UC_x5XG1OV2P6uZZ5FSM9Ttw"],
    )


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ChannelStats(BaseModel):
    """Aggregate performance statistics for a channel."""

    avg_views: int = 0
    median_views: int = 0
    avg_engagement: float = 0
    total_videos: int = 0
    high_performing_count: int = 0
    channel_star_count: int = 0


class VideoListResponse(BaseModel):
    """Paginated video listing for a channel."""

    channel: ChannelDocument
    videos: list[dict[str, Any]] = Field(default_factory=list)
    pagination: Pagination
    channel_stats: ChannelStats | None = None

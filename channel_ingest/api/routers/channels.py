"""Channel endpoints.

- Listing and adding tracked channels
- Listing a channel's stored videos
- Running a video sync for a channel
"""

import math

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from channel_ingest.api.dependencies import get_db_manager_dep, get_settings_dep, get_youtube_client
from channel_ingest.api.models.requests import AddChannelRequest, ChannelStats, Pagination, VideoListResponse
from channel_ingest.channel.resolver import resolve_channel
from channel_ingest.channel.schemas import ChannelDocument, SyncOptions, SyncResult
from channel_ingest.channel.sync import ChannelSyncOrchestrator
from channel_ingest.core.config import Settings
from channel_ingest.core.constants import DEFAULT_LIMIT, MAX_LIMIT

router = APIRouter(prefix="/channels", tags=["channels"])


async def _require_channel(db, channel_id: str) -> ChannelDocument:
    channel = await db.get_channel(channel_id)
    if channel is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Channel {channel_id} not found",
        )
    return channel


@router.get(
    "",
    response_model=list[ChannelDocument],
    summary="List channels",
    operation_id="list_channels",
)
async def list_channels(
    limit: int = Query(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    db=Depends(get_db_manager_dep),
) -> list[ChannelDocument]:
    """List tracked channels, newest first."""
    return await db.list_channels(limit=limit)


@router.post(
    "",
    response_model=ChannelDocument,
    status_code=status.HTTP_201_CREATED,
    summary="Track a channel",
    operation_id="add_channel",
)
async def add_channel(
    request: AddChannelRequest,
    db=Depends(get_db_manager_dep),
    client=Depends(get_youtube_client),
) -> ChannelDocument:
    """Resolve a handle, id or URL and start tracking the channel."""
    try:
        info = await resolve_channel(request.reference, client)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    channel_doc = ChannelDocument(
        id=ChannelDocument.new_id(),
        channel_id=info.channel_id,
        channel_name=info.name,
        channel_handle=request.reference if request.reference.startswith("@") else None,
        subscriber_count=info.subscriber_count,
        video_count=info.video_count,
        avatar_url=info.avatar_url,
    )
    channel_id = await db.save_channel(channel_doc)
    return await _require_channel(db, channel_id)


@router.get(
    "/{channel_id}",
    response_model=ChannelDocument,
    summary="Get channel",
    operation_id="get_channel",
)
async def get_channel(
    channel_id: str = Path(..., description="Internal channel id"),
    db=Depends(get_db_manager_dep),
) -> ChannelDocument:
    return await _require_channel(db, channel_id)


@router.get(
    "/{channel_id}/videos",
    response_model=VideoListResponse,
    summary="List channel videos",
    description="""
    List stored videos of a channel, newest first.

    Videos with performance metrics carry absolute / relative tiers, and the
    response then includes aggregate channel statistics.
    """,
    operation_id="list_channel_videos",
)
async def list_channel_videos(
    channel_id: str = Path(..., description="Internal channel id"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    is_high_performing: bool | None = Query(default=None),
    db=Depends(get_db_manager_dep),
) -> VideoListResponse:
    channel = await _require_channel(db, channel_id)

    videos = await db.list_videos(
        channel_id, page=page, limit=limit, is_high_performing=is_high_performing
    )
    total = await db.count_videos(channel_id, is_high_performing=is_high_performing)

    stats = None
    if any(video.get("performance_metrics") for video in videos):
        raw_stats = await db.channel_stats(channel_id)
        stats = ChannelStats(**raw_stats) if raw_stats else None

    return VideoListResponse(
        channel=channel,
        videos=videos,
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if total else 0,
        ),
        channel_stats=stats,
    )


@router.post(
    "/{channel_id}/videos",
    response_model=SyncResult,
    summary="Sync channel videos",
    description="""
    Run one ingestion pass for the channel.

    Lists uploads up to `max_videos` (9999 means all), fetches details and
    optionally captions, drops short-form videos unless `include_shorts` is
    set and stores the result under the `full` or `incremental` policy.
    """,
    operation_id="sync_channel_videos",
)
async def sync_channel_videos(
    options: SyncOptions,
    channel_id: str = Path(..., description="Internal channel id"),
    db=Depends(get_db_manager_dep),
    client=Depends(get_youtube_client),
    settings: Settings = Depends(get_settings_dep),
) -> SyncResult:
    channel = await _require_channel(db, channel_id)
    orchestrator = ChannelSyncOrchestrator(client, client, db, settings)
    return await orchestrator.run(channel, options)

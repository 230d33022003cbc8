"""Reconcile freshly fetched videos against stored ones."""

import logging
from typing import Protocol

from channel_ingest.channel.schemas import IngestedVideo, InsertedSummary, SyncPolicy, SyncStatus

logger = logging.getLogger(__name__)


class VideoStore(Protocol):
    """Persistence operations used by a sync run."""

    async def delete_all_for_channel(self, channel_id: str) -> int: ...

    async def existing_video_ids(self, channel_id: str) -> set[str]: ...

    async def insert_videos(
        self, videos: list[IngestedVideo], minimal: bool = False
    ) -> list[InsertedSummary]: ...

    async def trigger_recompute(self, channel_id: str) -> None: ...

    async def update_channel_status(
        self,
        channel_id: str,
        status: SyncStatus,
        error_message: str | None = None,
    ) -> None: ...


class SyncReconciler:
    """
    Decide which fetched videos get inserted.

    ``full`` replaces the channel's stored videos with the fetched set.
    ``incremental`` is append-only: it never updates or deletes a stored row,
    and only videos whose id is not already stored are returned.
    """

    def __init__(self, store: VideoStore) -> None:
        self.store = store

    async def reconcile(
        self,
        channel_id: str,
        videos: list[IngestedVideo],
        policy: SyncPolicy,
    ) -> list[IngestedVideo]:
        if policy == "full":
            deleted = await self.store.delete_all_for_channel(channel_id)
            logger.info("Full sync: removed %d stored videos for %s", deleted, channel_id)
            return list(videos)

        existing = await self.store.existing_video_ids(channel_id)
        remaining = [video for video in videos if video.video_id not in existing]
        logger.info(
            "Incremental sync: %d stored, %d fetched, %d new",
            len(existing),
            len(videos),
            len(remaining),
        )
        return remaining

"""Channel sync orchestration - runs one ingestion pass for a channel."""

import asyncio
import random
import string
import time
from datetime import datetime, timezone

from channel_ingest.channel.catalog import CatalogPager, CatalogSource, DetailBatcher, resolve_target_count
from channel_ingest.channel.classifier import classify_video, filter_short_form
from channel_ingest.channel.duration import decode_duration, encode_duration
from channel_ingest.channel.reconcile import SyncReconciler, VideoStore
from channel_ingest.channel.schemas import (
    ChannelDocument,
    IngestedVideo,
    InsertedSummary,
    SyncFailure,
    SyncOptions,
    SyncResult,
    SyncStatus,
    TranscriptResult,
    VideoDetail,
    VideoType,
)
from channel_ingest.core.config import Settings, get_settings
from channel_ingest.core.constants import SYNC_STATUS_COMPLETED, SYNC_STATUS_ERROR, SYNC_STATUS_SYNCING
from channel_ingest.core.exceptions import ChannelSyncError, NotFoundError, PipelineError
from channel_ingest.core.logging_config import get_logger, log_channel_sync_event
from channel_ingest.transcription.batch import TranscriptBatchCoordinator
from channel_ingest.transcription.fetcher import CaptionSource, Sleep, TranscriptFetcher

logger = get_logger(__name__)


def new_run_id() -> str:
    """Build a run id of the form ``req_<millis>_<random>``."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"req_{int(time.time() * 1000)}_{suffix}"


def build_ingested_video(
    channel_id: str,
    detail: VideoDetail,
    video_type: VideoType,
    transcript: TranscriptResult | None = None,
) -> IngestedVideo:
    """Merge details, classification and transcript into the persisted shape."""
    transcript = transcript or TranscriptResult.empty(detail.video_id)
    seconds = decode_duration(detail.duration_code)
    return IngestedVideo(
        channel_id=channel_id,
        video_id=detail.video_id,
        title=detail.title or "Untitled",
        description=detail.description,
        thumbnail_url=detail.thumbnail_url,
        duration=encode_duration(seconds) if detail.duration_code else "0:00",
        duration_seconds=seconds,
        published_at=detail.published_at or datetime.now(timezone.utc).isoformat(),
        language=detail.default_language or "en",
        category=detail.category,
        tags=detail.tags,
        view_count=detail.view_count,
        like_count=detail.like_count,
        comment_count=detail.comment_count,
        video_type=video_type,
        transcript=transcript.transcript,
        has_transcript=transcript.has_transcript,
        transcript_language=transcript.language,
    )


class ChannelSyncOrchestrator:
    """
    Run a channel through ``idle -> syncing -> completed | error``.

    Every step is awaited before the next one starts. Status writes on the
    channel are best-effort: a failed write is logged and never changes the
    outcome of the run.
    """

    def __init__(
        self,
        catalog: CatalogSource,
        captions: CaptionSource,
        store: VideoStore,
        settings: Settings | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.settings = settings or get_settings()
        self.catalog = catalog
        self.store = store
        self.pager = CatalogPager(catalog, self.settings)
        self.batcher = DetailBatcher(catalog, self.settings)
        self.transcripts = TranscriptBatchCoordinator(
            TranscriptFetcher(captions, self.settings, sleep),
            self.settings,
            sleep,
        )
        self.reconciler = SyncReconciler(store)

    async def run(self, channel: ChannelDocument, options: SyncOptions | None = None) -> SyncResult:
        """
        Sync one channel.

        Returns:
            SyncResult on success

        Raises:
            ChannelSyncError: With the failure payload mirrored onto the channel
        """
        options = options or SyncOptions()
        run_id = new_run_id()
        started = time.monotonic()

        log_channel_sync_event(logger, channel.id, "started", run_id=run_id, channel_name=channel.channel_name)
        logger.info(
            "[%s] Options: max_videos=%s include_shorts=%s include_transcripts=%s mode=%s",
            run_id,
            options.max_videos,
            options.include_shorts,
            options.include_transcripts,
            options.sync_mode,
        )

        await self._set_status(channel.id, SYNC_STATUS_SYNCING)

        try:
            result = await self._execute(channel, options, run_id, started)
        except Exception as e:
            if isinstance(e, PipelineError):
                kind = e.kind
            else:
                kind = "internal"
                logger.exception("[%s] Unexpected error during sync", run_id)

            failure = SyncFailure(
                run_id=run_id,
                channel_id=channel.id,
                kind=kind,
                message=str(e) or type(e).__name__,
                duration_ms=_elapsed_ms(started),
            )
            await self._set_status(channel.id, SYNC_STATUS_ERROR, failure.message)
            log_channel_sync_event(
                logger,
                channel.id,
                "failed",
                run_id=run_id,
                channel_name=channel.channel_name,
                duration_ms=failure.duration_ms,
                error=failure.message,
            )
            raise ChannelSyncError(failure) from e

        await self._set_status(channel.id, SYNC_STATUS_COMPLETED)
        log_channel_sync_event(
            logger,
            channel.id,
            "completed",
            run_id=run_id,
            channel_name=channel.channel_name,
            videos_fetched=result.videos_fetched,
            videos_inserted=result.videos_inserted,
            duration_ms=result.duration_ms,
        )
        return result

    async def _execute(
        self,
        channel: ChannelDocument,
        options: SyncOptions,
        run_id: str,
        started: float,
    ) -> SyncResult:
        uploads_id = await self.catalog.get_uploads_playlist_id(channel.channel_id)

        target = resolve_target_count(options.max_videos, self.settings)
        video_ids = await self.pager.collect(uploads_id, target)
        logger.info("[%s] Listed %d videos (target %d)", run_id, len(video_ids), target)

        details = await self.batcher.fetch(video_ids)

        # Transcripts only for videos that made it through the detail lookup
        transcripts = await self.transcripts.fetch_all(
            [detail.video_id for detail in details],
            options.include_transcripts,
        )

        classified = [
            (detail, classify_video(detail, self.settings.short_max_seconds)) for detail in details
        ]
        kept = filter_short_form(classified, options.include_shorts)
        videos = [
            build_ingested_video(channel.id, detail, video_type, transcripts.get(detail.video_id))
            for detail, video_type in kept
        ]

        to_insert = await self.reconciler.reconcile(channel.id, videos, options.sync_mode)

        inserted: list[InsertedSummary] = []
        degraded = len(to_insert) > self.settings.large_batch_threshold
        if to_insert:
            if degraded:
                logger.info(
                    "[%s] Large batch (%d videos): inserting with minimal fields",
                    run_id,
                    len(to_insert),
                )
            inserted = await self.store.insert_videos(to_insert, minimal=degraded)
            if degraded:
                await self._signal_recompute(channel.id, run_id)
            message = f"Successfully synced {len(inserted)} videos"
        elif video_ids:
            message = "No new videos to sync"
        else:
            message = "No videos found for this channel"

        return SyncResult(
            run_id=run_id,
            channel_id=channel.id,
            sync_mode=options.sync_mode,
            videos_listed=len(video_ids),
            videos_fetched=len(details),
            videos_filtered=len(videos),
            videos_inserted=len(inserted),
            degraded_insert=degraded,
            message=message,
            inserted=inserted,
            duration_ms=_elapsed_ms(started),
        )

    async def _signal_recompute(self, channel_id: str, run_id: str) -> None:
        try:
            await self.store.trigger_recompute(channel_id)
        except Exception as e:
            logger.warning("[%s] Performance recompute signal failed for %s: %s", run_id, channel_id, e)

    async def _set_status(
        self,
        channel_id: str,
        status: SyncStatus,
        error_message: str | None = None,
    ) -> None:
        try:
            await self.store.update_channel_status(channel_id, status, error_message)
        except Exception as e:
            logger.warning("Failed to update channel %s status to %s: %s", channel_id, status, e)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


async def sync_channel(
    channel_id: str,
    options: SyncOptions | None = None,
    db_manager=None,
    client=None,
    settings: Settings | None = None,
) -> SyncResult:
    """
    Sync a stored channel by its internal id.

    Args:
        channel_id: Internal channel id (``ChannelDocument.id``)
        options: Sync options (defaults: 50 videos, no shorts, no transcripts, incremental)
        db_manager: Optional MongoDB manager instance
        client: Optional YouTube Data API client
        settings: Optional settings override

    Returns:
        SyncResult with sync statistics

    Raises:
        ConfigurationMissingError: If no YouTube API key is configured
        NotFoundError: If the channel is not stored
        ChannelSyncError: If the run itself fails
    """
    from channel_ingest.channel.youtube_client import YouTubeDataClient
    from channel_ingest.database import get_db_manager

    settings = settings or get_settings()
    client = client or YouTubeDataClient(settings=settings)
    db = db_manager or get_db_manager()

    channel = await db.get_channel(channel_id)
    if channel is None:
        raise NotFoundError("Channel not found")

    orchestrator = ChannelSyncOrchestrator(client, client, db, settings)
    return await orchestrator.run(channel, options)

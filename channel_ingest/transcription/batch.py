"""Throttled transcript fetching across many videos."""

import asyncio
import logging

from channel_ingest.channel.schemas import TranscriptResult
from channel_ingest.core.config import Settings, get_settings
from channel_ingest.transcription.fetcher import Sleep, TranscriptFetcher

logger = logging.getLogger(__name__)


class TranscriptBatchCoordinator:
    """
    Run the transcript fetcher over many videos under a backpressure policy.

    Videos are split into groups (default 3). Groups and the items inside them
    are processed strictly one after another, with a short pause between items
    and a longer pause between groups. Concurrent fetching triggers upstream
    throttling, so there is no parallelism here.
    """

    def __init__(
        self,
        fetcher: TranscriptFetcher,
        settings: Settings | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.fetcher = fetcher
        self.settings = settings or get_settings()
        self.sleep = sleep

    async def fetch_all(
        self,
        video_ids: list[str],
        include_transcripts: bool,
    ) -> dict[str, TranscriptResult]:
        """
        Fetch transcripts for every video id.

        Args:
            video_ids: Videos to process, in order
            include_transcripts: When False, return empty results without any request

        Returns:
            Mapping of video id to TranscriptResult (one entry per id)
        """
        if not include_transcripts:
            logger.info("Transcript fetching disabled by option")
            return {video_id: TranscriptResult.empty(video_id) for video_id in video_ids}

        size = max(self.settings.transcript_group_size, 1)
        groups = [video_ids[i : i + size] for i in range(0, len(video_ids), size)]
        results: dict[str, TranscriptResult] = {}

        logger.info("Starting transcript fetch for %d videos in %d groups", len(video_ids), len(groups))

        for group_index, group in enumerate(groups):
            if group_index > 0:
                await self.sleep(self.settings.transcript_group_delay)
            logger.debug("Transcript group %d/%d (%d videos)", group_index + 1, len(groups), len(group))

            for item_index, video_id in enumerate(group):
                if item_index > 0:
                    await self.sleep(self.settings.transcript_item_delay)
                try:
                    results[video_id] = await self.fetcher.fetch(video_id)
                except Exception:
                    logger.exception("Error fetching transcript for %s", video_id)
                    results[video_id] = TranscriptResult.empty(video_id)

        with_captions = sum(1 for r in results.values() if r.has_transcript)
        logger.info("Transcript fetch completed: %d/%d videos have captions", with_captions, len(video_ids))
        return results

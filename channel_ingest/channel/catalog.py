"""Uploads-catalog paging and batched detail fetching."""

import logging
from typing import Protocol

from channel_ingest.channel.schemas import CatalogPage, VideoDetail
from channel_ingest.core.config import Settings, get_settings
from channel_ingest.core.exceptions import QuotaExceededError, UpstreamError

logger = logging.getLogger(__name__)


class CatalogSource(Protocol):
    """Upstream operations needed to enumerate and enrich a channel's uploads."""

    async def get_uploads_playlist_id(self, channel_id: str) -> str: ...

    async def list_page(
        self,
        container_id: str,
        page_token: str | None = None,
        page_size: int = 50,
    ) -> CatalogPage: ...

    async def get_details(self, video_ids: list[str]) -> list[VideoDetail]: ...


def resolve_target_count(max_videos: int | None, settings: Settings | None = None) -> int:
    """
    Turn the caller's ``max_videos`` into a concrete listing target.

    The "all videos" sentinel (9999) maps to the hard cap (10000); a missing
    or zero value falls back to the default (50).
    """
    settings = settings or get_settings()
    if not max_videos:
        return settings.default_max_videos
    if max_videos == settings.all_videos_sentinel:
        return settings.all_videos_cap
    return max_videos


class CatalogPager:
    """Walk the uploads catalog page by page until the target is reached."""

    def __init__(self, source: CatalogSource, settings: Settings | None = None) -> None:
        self.source = source
        self.settings = settings or get_settings()

    async def collect(self, container_id: str, target: int) -> list[str]:
        """
        Collect up to ``target`` video ids in catalog order.

        Ids repeated across pages are kept once. Stops as soon as enough ids
        are accumulated or there is no continuation token, so at most
        ``ceil(target / page_size)`` pages are requested when the catalog has
        no repeats. Upstream errors propagate unchanged.
        """
        video_ids: list[str] = []
        seen: set[str] = set()
        page_token: str | None = None
        pages = 0

        while True:
            page = await self.source.list_page(
                container_id,
                page_token=page_token,
                page_size=self.settings.catalog_page_size,
            )
            pages += 1
            for item in page.items:
                if item.video_id and item.video_id not in seen:
                    seen.add(item.video_id)
                    video_ids.append(item.video_id)
            page_token = page.next_page_token

            logger.debug(
                "Catalog page %d: %d items, %d accumulated", pages, len(page.items), len(video_ids)
            )
            if len(video_ids) >= target or not page_token:
                break

        logger.info("Collected %d video ids from %d catalog pages", min(len(video_ids), target), pages)
        return video_ids[:target]


class DetailBatcher:
    """Fetch video details in batches of the details endpoint's id limit."""

    def __init__(self, source: CatalogSource, settings: Settings | None = None) -> None:
        self.source = source
        self.settings = settings or get_settings()

    async def fetch(self, video_ids: list[str]) -> list[VideoDetail]:
        """
        Fetch details for every id, preserving batch order.

        A quota error aborts the whole operation. Any other failed batch is
        logged and skipped so the remaining batches still contribute.
        """
        size = self.settings.detail_batch_size
        details: list[VideoDetail] = []

        for start in range(0, len(video_ids), size):
            batch = video_ids[start : start + size]
            try:
                details.extend(await self.source.get_details(batch))
            except QuotaExceededError:
                raise
            except UpstreamError as e:
                logger.warning(
                    "Skipping detail batch %d-%d: %s", start, start + len(batch) - 1, e
                )

        logger.info("Fetched details for %d of %d videos", len(details), len(video_ids))
        return details

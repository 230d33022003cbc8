"""YouTube Data API client (catalog, details, captions and channel lookup)."""

import logging
from typing import Any

import httpx

from channel_ingest.channel.schemas import CaptionTrack, CatalogItem, CatalogPage, ChannelInfo, VideoDetail
from channel_ingest.core.config import Settings, get_settings
from channel_ingest.core.exceptions import (
    ConfigurationMissingError,
    NotFoundError,
    QuotaExceededError,
    UpstreamError,
)
from channel_ingest.core.http_session import browser_headers, get_client
from channel_ingest.transcription.fetcher import CaptionEndpoint

logger = logging.getLogger(__name__)

QUOTA_MESSAGE = "YouTube API quota exceeded or invalid API key. Please check your API configuration."
QUOTA_STATUS_CODES = (403, 429)


class YouTubeDataClient:
    """
    Thin async wrapper around the YouTube Data API v3.

    Implements both the catalog source (uploads listing and video details) and
    the caption source (track listing and timed-text download) used by the
    sync pipeline. Non-success responses are translated into the pipeline's
    exception hierarchy so callers never look at status codes.
    """

    def __init__(
        self,
        api_key: str | None = None,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.api_key = api_key or self.settings.youtube_api_key
        if not self.api_key:
            raise ConfigurationMissingError("YouTube API key not configured")
        self.base_url = self.settings.youtube_api_base_url.rstrip("/")
        # Only caption attempts are time-boxed, by the fetcher
        self.client = client or get_client("youtube", timeout=None)

    async def _get_json(
        self,
        resource: str,
        params: dict[str, Any],
        not_found_message: str,
        failure_message: str,
    ) -> dict[str, Any]:
        url = f"{self.base_url}/{resource}"
        try:
            response = await self.client.get(url, params={**params, "key": self.api_key})
        except httpx.HTTPError as e:
            raise UpstreamError(f"{failure_message}: {e}") from e

        status = response.status_code
        if status in QUOTA_STATUS_CODES:
            raise QuotaExceededError(QUOTA_MESSAGE, status_code=status, body=response.text)
        if status == 404:
            raise NotFoundError(not_found_message, status_code=status, body=response.text)
        if not response.is_success:
            raise UpstreamError(
                f"{failure_message} ({status}): {response.text}",
                status_code=status,
                body=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"{failure_message}: invalid JSON response") from e

    async def get_uploads_playlist_id(self, channel_id: str) -> str:
        """Look up the uploads playlist of a channel."""
        data = await self._get_json(
            "channels",
            {"part": "contentDetails", "id": channel_id},
            not_found_message="Channel not found",
            failure_message="Failed to fetch channel information",
        )
        items = data.get("items") or []
        if not items:
            raise NotFoundError("Channel not found or inaccessible")

        uploads = ((items[0].get("contentDetails") or {}).get("relatedPlaylists") or {}).get("uploads")
        if not uploads:
            raise NotFoundError("Unable to find uploads playlist for this channel")

        logger.debug("Uploads playlist for %s: %s", channel_id, uploads)
        return uploads

    async def list_page(
        self,
        container_id: str,
        page_token: str | None = None,
        page_size: int = 50,
    ) -> CatalogPage:
        """Fetch one page of the uploads playlist."""
        params: dict[str, Any] = {
            "part": "snippet",
            "playlistId": container_id,
            "maxResults": page_size,
        }
        if page_token:
            params["pageToken"] = page_token

        data = await self._get_json(
            "playlistItems",
            params,
            not_found_message="Uploads playlist not found",
            failure_message="Failed to fetch playlist items",
        )

        items = []
        for entry in data.get("items") or []:
            snippet = entry.get("snippet") or {}
            video_id = (snippet.get("resourceId") or {}).get("videoId")
            if not video_id:
                continue
            items.append(
                CatalogItem(
                    video_id=video_id,
                    title=snippet.get("title") or "",
                    published_at=snippet.get("publishedAt"),
                )
            )
        return CatalogPage(items=items, next_page_token=data.get("nextPageToken"))

    async def get_details(self, video_ids: list[str]) -> list[VideoDetail]:
        """Fetch snippet, statistics and content details for up to 50 videos."""
        if not video_ids:
            return []
        data = await self._get_json(
            "videos",
            {"part": "snippet,statistics,contentDetails", "id": ",".join(video_ids)},
            not_found_message="Videos not found",
            failure_message="Failed to fetch video details",
        )
        return [VideoDetail.from_api_item(item) for item in data.get("items") or [] if item.get("id")]

    async def list_caption_tracks(self, video_id: str) -> list[CaptionTrack]:
        """List the caption tracks available for a video."""
        data = await self._get_json(
            "captions",
            {"part": "snippet", "videoId": video_id},
            not_found_message="Video not found",
            failure_message="Failed to fetch captions list",
        )
        tracks = []
        for item in data.get("items") or []:
            snippet = item.get("snippet") or {}
            if not snippet.get("language"):
                continue
            tracks.append(
                CaptionTrack(
                    language=snippet["language"],
                    track_kind=snippet.get("trackKind") or "standard",
                )
            )
        return tracks

    async def get_caption_payload(
        self,
        video_id: str,
        language: str,
        endpoint: CaptionEndpoint,
        attempt: int = 1,
    ) -> str:
        """Download a timed-text payload in the endpoint's format."""
        try:
            response = await self.client.get(
                self.settings.youtube_timedtext_url,
                params={"lang": language, "v": video_id, "fmt": endpoint.fmt},
                headers=browser_headers(attempt),
            )
        except httpx.HTTPError as e:
            raise UpstreamError(f"{endpoint.name} request failed: {e}") from e

        if not response.is_success:
            raise UpstreamError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
            )
        return response.text

    async def find_channel(self, identifier: str) -> ChannelInfo:
        """
        Look up a channel by id, then by handle, then by legacy username.

        Raises:
            NotFoundError: If none of the lookups matches a channel
        """
        lookups = (
            ("id", identifier),
            ("forHandle", identifier if identifier.startswith("@") else f"@{identifier}"),
            ("forUsername", identifier.lstrip("@")),
        )
        for param, value in lookups:
            data = await self._get_json(
                "channels",
                {"part": "snippet,statistics", param: value},
                not_found_message="Channel not found",
                failure_message="Failed to fetch channel information",
            )
            items = data.get("items") or []
            if items:
                info = ChannelInfo.from_api_item(items[0])
                logger.info("Resolved %s via %s to %s", identifier, param, info.channel_id)
                return info

        raise NotFoundError(f"Could not resolve channel: {identifier}")

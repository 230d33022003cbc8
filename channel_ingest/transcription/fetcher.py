"""Transcript retrieval for a single video with language / format fallbacks."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from channel_ingest.channel.schemas import CaptionTrack, TranscriptResult
from channel_ingest.core.config import Settings, get_settings
from channel_ingest.core.constants import (
    FALLBACK_CAPTION_LANGUAGES,
    MANUAL_EXTRACTION_TEMPLATE,
    MAX_AUTO_CAPTION_LANGUAGES,
    UNAVAILABLE_MARKERS,
)
from channel_ingest.core.exceptions import UpstreamError
from channel_ingest.transcription.parsers import CaptionFormat, parse_caption_payload

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class CaptionEndpoint:
    """One caption endpoint / format combination."""

    name: str
    fmt: str
    caption_format: CaptionFormat


# Fixed priority order
CAPTION_ENDPOINTS: tuple[CaptionEndpoint, ...] = (
    CaptionEndpoint("XML (srv3)", "srv3", CaptionFormat.XML),
    CaptionEndpoint("JSON3", "json3", CaptionFormat.JSON),
    CaptionEndpoint("VTT", "vtt", CaptionFormat.VTT),
    CaptionEndpoint("XML (srv1)", "srv1", CaptionFormat.XML),
)


class CaptionSource(Protocol):
    """Upstream operations the fetcher needs."""

    async def list_caption_tracks(self, video_id: str) -> list[CaptionTrack]: ...

    async def get_caption_payload(
        self,
        video_id: str,
        language: str,
        endpoint: CaptionEndpoint,
        attempt: int = 1,
    ) -> str: ...


def _track_priority(track: CaptionTrack) -> tuple[bool, bool, bool, bool]:
    language = track.language
    traditional = language in ("zh-TW", "zh-Hant")
    simplified = language in ("zh-CN", "zh-Hans", "zh")
    english = language.startswith("en")
    return (not traditional, not simplified, not english, not track.is_auto_generated)


def sort_caption_tracks(tracks: list[CaptionTrack]) -> list[CaptionTrack]:
    """Order tracks: Traditional Chinese, Simplified Chinese, English, auto-generated."""
    return sorted(tracks, key=_track_priority)


def build_language_order(tracks: list[CaptionTrack]) -> list[str]:
    """
    Build the de-duplicated language search order for a video.

    Primary track language first, then the fixed Chinese / English fallbacks,
    then up to five auto-generated track languages.
    """
    ordered = sort_caption_tracks(tracks)
    auto_languages = [t.language for t in ordered if t.is_auto_generated][:MAX_AUTO_CAPTION_LANGUAGES]
    candidates = [ordered[0].language, *FALLBACK_CAPTION_LANGUAGES, *auto_languages]
    return list(dict.fromkeys(candidates))


class TranscriptFetcher:
    """
    Fetch the transcript of one video.

    Search space: language x endpoint x retry. The first attempt whose payload
    parses to enough text wins; nothing is compared across attempts.
    """

    def __init__(
        self,
        source: CaptionSource,
        settings: Settings | None = None,
        sleep: Sleep = asyncio.sleep,
        endpoints: tuple[CaptionEndpoint, ...] = CAPTION_ENDPOINTS,
    ) -> None:
        self.source = source
        self.settings = settings or get_settings()
        self.sleep = sleep
        self.endpoints = endpoints

    async def fetch(self, video_id: str) -> TranscriptResult:
        """
        Fetch the transcript for a video.

        Returns one of three distinguishable outcomes:
        - transcript text (``has_transcript=True``)
        - the manual-extraction placeholder when tracks exist but nothing parsed
        - an empty result when there are no tracks or listing them failed
        """
        try:
            tracks = await self.source.list_caption_tracks(video_id)
        except UpstreamError as e:
            logger.info("Caption listing failed for %s: %s", video_id, e)
            return TranscriptResult.empty(video_id)

        if not tracks:
            logger.debug("No captions available for %s", video_id)
            return TranscriptResult.empty(video_id)

        primary = sort_caption_tracks(tracks)[0]
        languages = build_language_order(tracks)
        logger.debug(
            "Found %d caption tracks for %s, trying: %s",
            len(tracks),
            video_id,
            ", ".join(languages),
        )

        for index, language in enumerate(languages):
            if index > 0:
                await self.sleep(self.settings.transcript_language_delay)

            text = await self._fetch_language(video_id, language)
            if not text:
                continue
            if len(text) < self.settings.transcript_min_chars:
                logger.debug("Transcript too short for %s in %s: %d chars", video_id, language, len(text))
                continue

            logger.info("Fetched transcript for %s in %s (%d chars)", video_id, language, len(text))
            return TranscriptResult(
                video_id=video_id,
                transcript=text,
                has_transcript=True,
                language=language,
            )

        logger.info("All transcript attempts failed for %s; captions exist in %s", video_id, primary.language)
        return TranscriptResult(
            video_id=video_id,
            transcript=MANUAL_EXTRACTION_TEMPLATE.format(language=primary.language),
            has_transcript=True,
            language=primary.language,
        )

    async def _fetch_language(self, video_id: str, language: str) -> str | None:
        """Return the first non-empty parse for a language, or None.

        Each endpoint gets up to ``transcript_max_retries`` attempts. Upstream
        errors and timeouts back off before the next attempt; an empty parse
        is retried straight away.
        """
        retries = self.settings.transcript_max_retries
        for endpoint in self.endpoints:
            for attempt in range(1, retries + 1):
                try:
                    text = await self._attempt(video_id, language, endpoint, attempt)
                except (UpstreamError, asyncio.TimeoutError) as e:
                    logger.debug(
                        "%s attempt %d failed for %s (%s): %s",
                        endpoint.name,
                        attempt,
                        video_id,
                        language,
                        str(e) or "timeout",
                    )
                    if attempt < retries:
                        await self.sleep(self.settings.transcript_retry_backoff * attempt)
                    continue

                if text:
                    return text
                logger.debug("%s attempt %d parsed no text for %s (%s)", endpoint.name, attempt, video_id, language)
        return None

    async def _attempt(
        self,
        video_id: str,
        language: str,
        endpoint: CaptionEndpoint,
        attempt: int,
    ) -> str:
        payload = await asyncio.wait_for(
            self.source.get_caption_payload(video_id, language, endpoint, attempt),
            timeout=self.settings.transcript_attempt_timeout,
        )
        if not payload or len(payload) < 10:
            raise UpstreamError("Empty or too short response content")
        if any(marker in payload for marker in UNAVAILABLE_MARKERS):
            raise UpstreamError("Video unavailable or private")
        return parse_caption_payload(endpoint.caption_format, payload)

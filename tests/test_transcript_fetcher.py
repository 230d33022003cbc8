"""Tests for the transcript fetcher."""

import asyncio
import json

import pytest

from channel_ingest.channel.schemas import CaptionTrack
from channel_ingest.core.exceptions import QuotaExceededError
from channel_ingest.transcription.fetcher import (
    CAPTION_ENDPOINTS,
    TranscriptFetcher,
    build_language_order,
    sort_caption_tracks,
)
from tests.conftest import FakeCaptionSource

LONG_TEXT = "This caption line is long enough to count as a real transcript body."


def vtt(text: str) -> str:
    return f"WEBVTT\n\n00:00:00.000 --> 00:00:05.000\n{text}\n"


class TestLanguageOrder:
    """Test caption track ordering and language search order."""

    def test_sort_prefers_chinese_then_english_then_asr(self):
        tracks = [
            CaptionTrack(language="fr"),
            CaptionTrack(language="de", track_kind="asr"),
            CaptionTrack(language="en-GB"),
            CaptionTrack(language="zh-CN"),
            CaptionTrack(language="zh-Hant"),
        ]
        ordered = [t.language for t in sort_caption_tracks(tracks)]
        assert ordered == ["zh-Hant", "zh-CN", "en-GB", "de", "fr"]

    def test_language_order_is_deduplicated(self):
        tracks = [CaptionTrack(language="en"), CaptionTrack(language="ja", track_kind="asr")]
        assert build_language_order(tracks) == [
            "en",
            "zh-TW",
            "zh-Hant",
            "zh-CN",
            "zh-Hans",
            "zh",
            "en-US",
            "en-GB",
            "ja",
        ]

    def test_at_most_five_auto_languages(self):
        tracks = [CaptionTrack(language=f"l{i}", track_kind="asr") for i in range(8)]
        order = build_language_order(tracks)
        assert order[0] == "l0"
        assert [lang for lang in order if lang.startswith("l")] == ["l0", "l1", "l2", "l3", "l4"]


class TestTranscriptFetcher:
    """Test the language x endpoint x retry search."""

    @pytest.mark.asyncio
    async def test_no_tracks_is_empty(self, settings, recording_sleep):
        fetcher = TranscriptFetcher(FakeCaptionSource(), settings, recording_sleep)

        result = await fetcher.fetch("vid1")

        assert result.has_transcript is False
        assert result.transcript == ""

    @pytest.mark.asyncio
    async def test_listing_failure_is_empty(self, settings, recording_sleep):
        source = FakeCaptionSource()
        source.list_error = QuotaExceededError("quota")
        fetcher = TranscriptFetcher(source, settings, recording_sleep)

        result = await fetcher.fetch("vid1")

        assert result.has_transcript is False
        assert source.payload_calls == []

    @pytest.mark.asyncio
    async def test_first_success_wins(self, settings, recording_sleep):
        source = FakeCaptionSource(
            tracks={"vid1": [CaptionTrack(language="en")]},
            payloads={("vid1", "en", "srv3"): f'<transcript><text start="0">{LONG_TEXT}</text></transcript>'},
        )
        fetcher = TranscriptFetcher(source, settings, recording_sleep)

        result = await fetcher.fetch("vid1")

        assert result.has_transcript is True
        assert result.transcript == LONG_TEXT
        assert result.language == "en"
        assert source.payload_calls == [("vid1", "en", "srv3", 1)]
        assert recording_sleep.calls == []

    @pytest.mark.asyncio
    async def test_falls_through_formats_after_retries(self, settings, recording_sleep):
        source = FakeCaptionSource(
            tracks={"vid1": [CaptionTrack(language="en")]},
            payloads={("vid1", "en", "vtt"): vtt(LONG_TEXT)},
        )
        fetcher = TranscriptFetcher(source, settings, recording_sleep)

        result = await fetcher.fetch("vid1")

        assert result.transcript == LONG_TEXT
        # srv3 and json3 each fail three times before vtt succeeds
        assert [call[2] for call in source.payload_calls] == ["srv3"] * 3 + ["json3"] * 3 + ["vtt"]
        assert recording_sleep.calls == [1.0, 2.0, 1.0, 2.0]

    @pytest.mark.asyncio
    async def test_short_result_moves_to_next_language(self, settings, recording_sleep):
        source = FakeCaptionSource(
            tracks={"vid1": [CaptionTrack(language="fr")]},
            payloads={
                ("vid1", "fr", "srv3"): '<transcript><text start="0">trop court</text></transcript>',
                ("vid1", "zh-TW", "srv3"): f'<transcript><text start="0">{LONG_TEXT}</text></transcript>',
            },
        )
        fetcher = TranscriptFetcher(source, settings, recording_sleep)

        result = await fetcher.fetch("vid1")

        assert result.language == "zh-TW"
        assert result.transcript == LONG_TEXT
        # The short French text ends that language; no other French endpoint is tried
        assert source.payload_calls == [("vid1", "fr", "srv3", 1), ("vid1", "zh-TW", "srv3", 1)]
        assert recording_sleep.calls == [0.5]

    @pytest.mark.asyncio
    async def test_empty_parse_is_retried_without_backoff(self, settings, recording_sleep):
        source = FakeCaptionSource(
            tracks={"vid1": [CaptionTrack(language="en")]},
            payloads={
                ("vid1", "en", "srv3"): "<transcript></transcript>",
                ("vid1", "en", "json3"): json.dumps({"events": [{"segs": [{"utf8": LONG_TEXT}]}]}),
            },
        )
        fetcher = TranscriptFetcher(source, settings, recording_sleep)

        result = await fetcher.fetch("vid1")

        assert result.transcript == LONG_TEXT
        assert source.payload_calls == [
            ("vid1", "en", "srv3", 1),
            ("vid1", "en", "srv3", 2),
            ("vid1", "en", "srv3", 3),
            ("vid1", "en", "json3", 1),
        ]
        assert recording_sleep.calls == []

    @pytest.mark.asyncio
    async def test_unavailable_marker_counts_as_failure(self, settings, recording_sleep):
        source = FakeCaptionSource(
            tracks={"vid1": [CaptionTrack(language="en")]},
            payloads={
                ("vid1", "en", "srv3"): "<html>Private video - sign in</html>",
                ("vid1", "en", "json3"): json.dumps({"events": [{"segs": [{"utf8": LONG_TEXT}]}]}),
            },
        )
        fetcher = TranscriptFetcher(source, settings, recording_sleep)

        result = await fetcher.fetch("vid1")

        assert result.transcript == LONG_TEXT
        assert [call[2] for call in source.payload_calls].count("srv3") == 3

    @pytest.mark.asyncio
    async def test_exhaustion_returns_manual_extraction_placeholder(self, settings, recording_sleep):
        source = FakeCaptionSource(tracks={"vid1": [CaptionTrack(language="ko")]})
        fetcher = TranscriptFetcher(source, settings, recording_sleep)

        result = await fetcher.fetch("vid1")

        assert result.has_transcript is True
        assert result.transcript == "[captions available in ko - requires manual extraction]"
        languages = build_language_order([CaptionTrack(language="ko")])
        assert len(source.payload_calls) == len(languages) * len(CAPTION_ENDPOINTS) * 3
        assert recording_sleep.calls.count(0.5) == len(languages) - 1

    @pytest.mark.asyncio
    async def test_attempt_timeout_is_retried(self, recording_sleep):
        from channel_ingest.core.config import Settings

        settings = Settings(youtube_api_key="k", transcript_attempt_timeout=0.01, _env_file=None)

        class SlowThenFast(FakeCaptionSource):
            async def get_caption_payload(self, video_id, language, endpoint, attempt=1):
                self.payload_calls.append((video_id, language, endpoint.fmt, attempt))
                if attempt == 1:
                    await asyncio.sleep(1)
                return f'<text start="0">{LONG_TEXT}</text>'

        source = SlowThenFast(tracks={"vid1": [CaptionTrack(language="en")]})
        fetcher = TranscriptFetcher(source, settings, recording_sleep)

        result = await fetcher.fetch("vid1")

        assert result.transcript == LONG_TEXT
        assert [call[3] for call in source.payload_calls] == [1, 2]
        assert recording_sleep.calls == [1.0]

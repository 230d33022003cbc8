"""Caption retrieval and parsing."""

from channel_ingest.transcription.batch import TranscriptBatchCoordinator
from channel_ingest.transcription.fetcher import (
    CAPTION_ENDPOINTS,
    CaptionEndpoint,
    CaptionSource,
    TranscriptFetcher,
    build_language_order,
)
from channel_ingest.transcription.parsers import (
    CaptionFormat,
    parse_caption_payload,
    parse_json3,
    parse_timed_xml,
    parse_webvtt,
)

__all__ = [
    "CAPTION_ENDPOINTS",
    "CaptionEndpoint",
    "CaptionFormat",
    "CaptionSource",
    "TranscriptBatchCoordinator",
    "TranscriptFetcher",
    "build_language_order",
    "parse_caption_payload",
    "parse_json3",
    "parse_timed_xml",
    "parse_webvtt",
]

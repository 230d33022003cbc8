"""Caption payload decoders (timed XML, JSON3, WebVTT) reducing to plain text.

Every parser returns an empty string instead of raising when the payload is
empty, malformed or of an unexpected shape.
"""

import html
import json
import logging
import re
from collections.abc import Callable
from enum import Enum
from typing import Any

from channel_ingest.core.constants import LARGE_TRANSCRIPT_CHARS
from channel_ingest.core.exceptions import TranscriptParseError

logger = logging.getLogger(__name__)


class CaptionFormat(str, Enum):
    """Wire format of a caption payload."""

    XML = "xml"
    JSON = "json"
    VTT = "vtt"


_TIMED_TEXT_RE = re.compile(r'<text[^>]*start="([^"]*?)"[^>]*?>(.*?)</text>', re.IGNORECASE | re.DOTALL)
_TEXT_TAG_RE = re.compile(r"<text[^>]*>(.*?)</text>", re.IGNORECASE | re.DOTALL)
_LOOSE_TEXT_RE = re.compile(r">([^<]{3,})<")
_MARKUP_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")

XML_METADATA_MARKERS = ("timedtext", "xml version", "encoding", "http://www.w3.org", "doctype")


def normalize_transcript(text: str) -> str:
    """Collapse whitespace and trim. Long transcripts are logged, never cut."""
    cleaned = _WHITESPACE_RE.sub(" ", text).strip()
    if len(cleaned) > LARGE_TRANSCRIPT_CHARS:
        logger.info("Large transcript detected: %d characters", len(cleaned))
    return cleaned


def _as_text(payload: str | bytes | None) -> str:
    if payload is None:
        return ""
    if isinstance(payload, bytes):
        return payload.decode("utf-8", errors="replace")
    return payload


def _to_float(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        return 0.0


def is_xml_metadata(text: str) -> bool:
    """Whether a text fragment is XML boilerplate rather than caption text."""
    lowered = text.lower()
    return any(marker in lowered for marker in XML_METADATA_MARKERS)


def parse_timed_xml(payload: str | bytes | None) -> str:
    """Decode a timed-text XML payload (srv1 / srv3)."""
    content = _as_text(payload)
    if not content:
        return ""

    timed: list[tuple[float, str]] = []
    for start, raw in _TIMED_TEXT_RE.findall(content):
        text = html.unescape(raw).strip()
        if text:
            timed.append((_to_float(start), text))

    if timed:
        timed.sort(key=lambda entry: entry[0])
        return normalize_transcript(" ".join(text for _, text in timed))

    # Looser <text> scan without timing attributes
    plain = [html.unescape(raw).strip() for raw in _TEXT_TAG_RE.findall(content)]
    plain = [text for text in plain if text]
    if plain:
        return normalize_transcript(" ".join(plain))

    # Last resort: any text node that is not XML metadata
    fragments = [html.unescape(raw).strip() for raw in _LOOSE_TEXT_RE.findall(content)]
    fragments = [text for text in fragments if text and not is_xml_metadata(text)]
    if fragments:
        return normalize_transcript(" ".join(fragments))

    logger.debug("No text content found in XML payload")
    return ""


def _json3_parts(data: Any) -> list[str]:
    if not isinstance(data, dict):
        raise TranscriptParseError("JSON caption payload is not an object")

    parts: list[str] = []
    events = data.get("events")
    if isinstance(events, list):
        for event in events:
            segs = event.get("segs") if isinstance(event, dict) else None
            if not isinstance(segs, list):
                continue
            for seg in segs:
                utf8 = seg.get("utf8") if isinstance(seg, dict) else None
                if isinstance(utf8, str) and utf8.strip():
                    parts.append(utf8.strip())

    texts = data.get("text")
    if not parts and isinstance(texts, list):
        for item in texts:
            if isinstance(item, str):
                value = item
            elif isinstance(item, dict) and isinstance(item.get("text"), str):
                value = item["text"]
            else:
                continue
            if value.strip():
                parts.append(value.strip())

    return parts


def parse_json3(payload: str | bytes | None) -> str:
    """Decode a JSON3 payload (``events[].segs[].utf8`` or flat ``text[]``)."""
    content = _as_text(payload)
    if not content:
        return ""
    try:
        parts = _json3_parts(json.loads(content))
    except (ValueError, TranscriptParseError) as e:
        logger.debug("Unparseable JSON caption payload: %s", e)
        return ""
    return normalize_transcript(" ".join(parts)) if parts else ""


def parse_webvtt(payload: str | bytes | None) -> str:
    """Decode a WebVTT payload: the line after each cue timing is caption text."""
    content = _as_text(payload)
    if not content:
        return ""

    parts: list[str] = []
    expecting_text = False
    for line in content.split("\n"):
        stripped = line.strip()
        if stripped == "WEBVTT" or not stripped:
            expecting_text = False
            continue
        if " --> " in stripped:
            expecting_text = True
            continue
        if expecting_text:
            text = _WHITESPACE_RE.sub(" ", _MARKUP_RE.sub("", stripped)).strip()
            if text:
                parts.append(text)
            expecting_text = False

    return normalize_transcript(" ".join(parts)) if parts else ""


PARSERS: dict[CaptionFormat, Callable[[str | bytes | None], str]] = {
    CaptionFormat.XML: parse_timed_xml,
    CaptionFormat.JSON: parse_json3,
    CaptionFormat.VTT: parse_webvtt,
}


def parse_caption_payload(caption_format: CaptionFormat, payload: str | bytes | None) -> str:
    """Dispatch a payload to the parser for its format."""
    return PARSERS[caption_format](payload)

"""Short / regular / live classification of fetched videos."""

import logging

from channel_ingest.channel.duration import decode_duration
from channel_ingest.channel.schemas import VideoDetail, VideoType
from channel_ingest.core.constants import (
    LIVE_BROADCAST_VALUES,
    SHORT_FORM_MARKERS,
    VIDEO_TYPE_LIVE,
    VIDEO_TYPE_REGULAR,
    VIDEO_TYPE_SHORT,
)

logger = logging.getLogger(__name__)


def has_short_form_marker(video: VideoDetail) -> bool:
    """Whether title or description carries a short-form hashtag."""
    text = f"{video.title}\n{video.description}".lower()
    return any(marker in text for marker in SHORT_FORM_MARKERS)


def classify_video(video: VideoDetail, short_max_seconds: int = 180) -> VideoType:
    """
    Classify a video.

    Priority order: live status, then hashtag markers, then duration.
    A duration of 0 means unknown and never yields ``short``.

    Args:
        video: Video details
        short_max_seconds: Videos strictly shorter than this are short-form

    Returns:
        "live", "short" or "regular"
    """
    if (video.live_broadcast_content or "").lower() in LIVE_BROADCAST_VALUES:
        return VIDEO_TYPE_LIVE

    if has_short_form_marker(video):
        return VIDEO_TYPE_SHORT

    seconds = decode_duration(video.duration_code)
    if 0 < seconds < short_max_seconds:
        return VIDEO_TYPE_SHORT

    return VIDEO_TYPE_REGULAR


def filter_short_form(
    classified: list[tuple[VideoDetail, VideoType]],
    include_shorts: bool,
) -> list[tuple[VideoDetail, VideoType]]:
    """Drop ``short`` items unless short-form content is requested."""
    if include_shorts:
        return list(classified)

    kept = []
    for video, video_type in classified:
        if video_type == VIDEO_TYPE_SHORT:
            logger.debug("Excluding short video %s: %s", video.video_id, video.title[:50])
            continue
        kept.append((video, video_type))

    logger.info(
        "Short filter: %d of %d videos kept (include_shorts=%s)",
        len(kept),
        len(classified),
        include_shorts,
    )
    return kept

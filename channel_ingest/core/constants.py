"""Application constants and metadata."""

APP_NAME = "Channel Ingest API"
APP_DESCRIPTION = """
Channel video ingestion service.

Discovers every upload of a YouTube channel, enriches it with statistics and
captions, classifies it (short / regular / live) and stores it per channel
under a full or incremental sync policy.
"""
APP_VERSION = "0.1.0"

API_V1_PREFIX = "/api/v1"

DEFAULT_LIMIT = 50
MAX_LIMIT = 500

# Channel sync states
SYNC_STATUS_IDLE = "idle"
SYNC_STATUS_SYNCING = "syncing"
SYNC_STATUS_COMPLETED = "completed"
SYNC_STATUS_ERROR = "error"

# Video classifications
VIDEO_TYPE_SHORT = "short"
VIDEO_TYPE_REGULAR = "regular"
VIDEO_TYPE_LIVE = "live"

# Short-form markers matched case-insensitively in title / description
SHORT_FORM_MARKERS = ("#shorts", "#short")

# Upstream live-status values that classify a video as live
LIVE_BROADCAST_VALUES = ("live", "upcoming")

# Fields returned by the degraded (large batch) insert path
MINIMAL_INSERT_FIELDS = ("id", "video_id", "title", "view_count", "like_count", "comment_count")
FULL_INSERT_FIELDS = MINIMAL_INSERT_FIELDS + ("performance_score", "is_high_performing")

# Transcript results
MANUAL_EXTRACTION_TEMPLATE = "[captions available in {language} - requires manual extraction]"
LARGE_TRANSCRIPT_CHARS = 50_000

# Markers that mark a caption payload as an unavailable / private video.
# "error" also matches legitimate caption text; kept as upstream behaves.
UNAVAILABLE_MARKERS = ("Video unavailable", "Private video", "error")

# Preferred caption languages after the primary track language
FALLBACK_CAPTION_LANGUAGES = ("zh-TW", "zh-Hant", "zh-CN", "zh-Hans", "zh", "en", "en-US", "en-GB")
MAX_AUTO_CAPTION_LANGUAGES = 5

# Absolute / relative performance tiers (lower bound, tier)
ABSOLUTE_TIERS = (
    (80, "youtube-top"),
    (60, "youtube-high"),
    (40, "youtube-medium"),
    (20, "youtube-normal"),
)
ABSOLUTE_TIER_FLOOR = "needs-improvement"
RELATIVE_TIERS = (
    (70, "channel-star"),
    (50, "above-average"),
    (30, "near-average"),
)
RELATIVE_TIER_FLOOR = "below-average"
CHANNEL_STAR_SCORE = 70

API_TAGS = [
    {"name": "channels", "description": "Channel sync and video listing"},
    {"name": "health", "description": "Service health"},
]

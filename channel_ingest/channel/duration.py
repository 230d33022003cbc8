"""Compact duration codes (``PT1H30M``) to seconds and display text."""

import re

_DURATION_RE = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


def decode_duration(code: str | None) -> int:
    """Parse ``PT[nH][nM][nS]`` into seconds.

    Missing components count as zero. Anything unparseable yields 0.
    """
    if not isinstance(code, str):
        return 0
    match = _DURATION_RE.search(code)
    if not match:
        return 0
    hours, minutes, seconds = (int(part or 0) for part in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def encode_duration(seconds: int) -> str:
    """Render seconds as ``H:MM:SS`` (with hours) or ``M:SS``."""
    seconds = max(int(seconds), 0)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"

"""Channel reference resolver - converts handles and URLs to channel metadata."""

import re

from channel_ingest.channel.schemas import ChannelInfo
from channel_ingest.channel.youtube_client import YouTubeDataClient

_URL_PATTERNS = (
    re.compile(r"youtube\.com/channel/([a-zA-Z0-9_-]+)"),
    re.compile(r"youtube\.com/c/([a-zA-Z0-9_-]+)"),
    re.compile(r"youtube\.com/user/([a-zA-Z0-9_-]+)"),
    re.compile(r"youtube\.com/(@[a-zA-Z0-9_.-]+)"),
)


def parse_channel_reference(reference: str) -> str:
    """
    Extract the channel identifier from a handle, channel id or URL.

    Args:
        reference: "@handle", "handle", "UC..." or a youtube.com channel URL

    Returns:
        The bare identifier to look up

    Raises:
        ValueError: If a URL is given that matches no known channel pattern
    """
    reference = reference.strip()
    if reference.startswith("http") or "youtube.com/" in reference:
        for pattern in _URL_PATTERNS:
            match = pattern.search(reference)
            if match:
                return match.group(1)
        raise ValueError(f"Could not extract channel from URL: {reference}")
    return reference


async def resolve_channel(reference: str, client: YouTubeDataClient) -> ChannelInfo:
    """
    Resolve a channel reference to channel metadata.

    Args:
        reference: Handle, channel id or channel URL
        client: YouTube Data API client

    Returns:
        ChannelInfo with the canonical channel id
    """
    identifier = parse_channel_reference(reference)
    return await client.find_channel(identifier)

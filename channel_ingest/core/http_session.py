"""HTTP client management for efficient request handling."""

import httpx

# Global client cache
_clients: dict[str, httpx.AsyncClient] = {}

BROWSER_USER_AGENTS = [
    (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
]


def browser_headers(attempt: int = 0) -> dict[str, str]:
    """
    Build browser-like request headers.

    The user agent rotates with the attempt number so that retries do not
    present an identical fingerprint.

    Args:
        attempt: Attempt number (any int, wrapped around the agent list)

    Returns:
        Header dictionary
    """
    return {
        "User-Agent": BROWSER_USER_AGENTS[attempt % len(BROWSER_USER_AGENTS)],
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Accept-Encoding": "gzip, deflate, br",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
    }


def get_client(
    name: str = "default",
    timeout: float | None = 30.0,
    max_retries: int = 3,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Get or create a cached async HTTP client.

    Clients are reused to benefit from connection pooling.

    Args:
        name: Client name for caching (use different names for different purposes)
        timeout: Request timeout in seconds (None disables the client timeout)
        max_retries: Connection-level retries for failed connects
        transport: Optional transport override (used by tests)

    Returns:
        Configured httpx.AsyncClient instance
    """
    if name in _clients and not _clients[name].is_closed:
        return _clients[name]

    client = httpx.AsyncClient(
        timeout=timeout,
        transport=transport or httpx.AsyncHTTPTransport(retries=max_retries),
        headers=browser_headers(),
        follow_redirects=True,
    )

    _clients[name] = client
    return client


async def close_all_clients() -> None:
    """Close all cached clients."""
    for client in list(_clients.values()):
        await client.aclose()
    _clients.clear()

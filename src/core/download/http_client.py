"""HTTP session factory shared by the download and warm-up lanes."""

from typing import Optional

import aiohttp

DEFAULT_MAX_CONNECTIONS = 100
DEFAULT_MAX_CONNECTIONS_PER_HOST = 10


def create_session(
    max_connections: int = DEFAULT_MAX_CONNECTIONS,
    max_connections_per_host: int = DEFAULT_MAX_CONNECTIONS_PER_HOST,
    timeout: Optional[float] = None,
) -> aiohttp.ClientSession:
    """
    Create an aiohttp session with a bounded connection pool.

    Args:
        max_connections: Total connection pool size
        max_connections_per_host: Per-host connection limit
        timeout: Default total timeout per request in seconds (None = no limit)

    Returns:
        New ClientSession; the caller owns it and must close it
    """
    connector = aiohttp.TCPConnector(
        limit=max_connections,
        limit_per_host=max_connections_per_host,
    )
    return aiohttp.ClientSession(
        connector=connector,
        timeout=aiohttp.ClientTimeout(total=timeout),
    )

"""aiohttp session construction shared by the delivery and DDL clients."""

import aiohttp

DEFAULT_TIMEOUT_SECONDS = 30


def create_session(
    timeout_total: float = DEFAULT_TIMEOUT_SECONDS,
    max_connections: int = 10,
    enable_ssl: bool = True,
) -> aiohttp.ClientSession:
    """
    Create an aiohttp ClientSession with a bounded pool and a total timeout.

    Individual requests may still pass their own ClientTimeout.

    Note:
        Caller is responsible for session lifecycle management:

        async with create_session() as session:
            ...
    """
    connector = aiohttp.TCPConnector(
        limit=max_connections,
        ssl=enable_ssl,
        ttl_dns_cache=300,
    )
    timeout = aiohttp.ClientTimeout(total=timeout_total)
    return aiohttp.ClientSession(connector=connector, timeout=timeout)


__all__ = ["DEFAULT_TIMEOUT_SECONDS", "create_session"]

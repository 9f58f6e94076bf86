"""Outbound HTTP Client — one tuned httpx.AsyncClient shared by both gateways.

Invariants:
    - Connect, read, and total timeouts always set (no unbounded socket waits)
    - Connection pool sized for many concurrent requests to the same host

Design Decisions:
    - Builder function over module-level client: the FastAPI lifespan owns the
      client and closes it on shutdown
"""

import httpx

from pokedex.config import Settings


def build_async_client(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the shared outbound client from settings."""
    timeout = httpx.Timeout(
        settings.http_total_timeout_seconds,
        connect=settings.http_connect_timeout_seconds,
        read=settings.http_read_timeout_seconds,
    )
    limits = httpx.Limits(
        max_connections=settings.http_max_connections,
        max_keepalive_connections=settings.http_max_connections,
        keepalive_expiry=settings.http_keepalive_expiry_seconds,
    )
    return httpx.AsyncClient(
        timeout=timeout,
        limits=limits,
        transport=transport,
        headers={"Accept": "application/json"},
    )

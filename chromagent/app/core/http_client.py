"""Shared HTTP client management for connection pooling.

One ``httpx.AsyncClient`` is opened in the application lifespan and shared by
the Nia client and the model gateway provider.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx

from chromagent.app.core.config import Settings


def build_timeout(settings: Settings) -> httpx.Timeout:
    """Granular timeouts from settings.

    - connect: Time to establish socket connection
    - read: Time to read response data (model streams need more time)
    - write: Time to send request data
    - pool: Time to acquire connection from pool
    """
    return httpx.Timeout(
        connect=settings.httpx_connect_timeout,
        read=settings.httpx_read_timeout,
        write=settings.httpx_write_timeout,
        pool=settings.httpx_pool_timeout,
    )


def build_limits(settings: Settings) -> httpx.Limits:
    return httpx.Limits(
        max_connections=settings.httpx_max_connections,
        max_keepalive_connections=settings.httpx_max_keepalive_connections,
        keepalive_expiry=settings.httpx_keepalive_expiry,
    )


@asynccontextmanager
async def init_http_client(settings: Settings) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Open the shared HTTP client and close it on exit.

    This context manager should be used in the FastAPI lifespan:

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            async with init_http_client(settings) as client:
                yield
    """
    client = httpx.AsyncClient(
        timeout=build_timeout(settings),
        limits=build_limits(settings),
    )
    try:
        yield client
    finally:
        await client.aclose()

"""Model provider interface used by the chat runtime."""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator, Dict, Optional

import httpx


class BaseProvider(ABC):
    """A chat completion endpoint reached over HTTP.

    The lifespan's shared ``httpx.AsyncClient`` is used when given; otherwise
    each stream opens and closes its own client.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 120.0
    ):
        """
        Args:
            base_url: Provider base URL, e.g. https://ai-gateway.vercel.sh/v1
            api_key: Bearer credential; may be empty until first use
            http_client: Shared client from the application lifespan
            timeout: Timeout for a client opened per stream
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._http_client = http_client

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def endpoint_url(self, path: str) -> str:
        return self.base_url + path

    @asynccontextmanager
    async def client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as own_client:
            yield own_client

    @abstractmethod
    def stream_chat(self, payload: Dict[str, Any]) -> AsyncGenerator[Dict[str, Any], None]:
        """Stream one chat completion as decoded JSON chunks.

        Args:
            payload: Request body (model, messages, tools, ...)
        """

"""HTTP client for the Nia search API.

Every call is a single authenticated request against one base URL. Non-2xx
responses raise :class:`UpstreamError` carrying the upstream body; nothing is
retried here.
"""

from typing import Any, Dict, Mapping, Optional, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from chromagent.app.core.logging import get_logger
from chromagent.app.exceptions import ConfigurationError, UpstreamError, UpstreamResponseError
from chromagent.app.nia.schemas import (
    GrepResponse,
    ListResponse,
    NiaResponse,
    QueryResponse,
    ReadResponse,
    SourceContentResponse,
    TreeResponse,
    WebSearchResponse,
)

logger = get_logger(__name__)

ResponseT = TypeVar("ResponseT", bound=NiaResponse)


def drop_none(values: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Copy a mapping without its None values so upstream defaults apply."""
    if not values:
        return {}
    return {k: v for k, v in values.items() if v is not None}


def encode_id(identifier: str) -> str:
    """Percent-encode a source id for use as one path segment."""
    return quote(identifier, safe="")


class NiaClient:
    """Nia API client sharing an ``httpx.AsyncClient`` for connection pooling.

    If http_client is not provided, a new client is created per request.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        http_client: Optional[httpx.AsyncClient] = None,
        query_path: str = "/query",
        web_search_path: str = "/web-search",
    ):
        """Initialize the client.

        Args:
            base_url: The Nia API base URL (e.g. https://apigcp.trynia.ai/v2)
            api_key: Bearer credential; checked on first request
            http_client: Optional shared HTTP client
            query_path: Semantic query endpoint for this deployment
            web_search_path: Web search endpoint for this deployment
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.query_path = query_path
        self.web_search_path = web_search_path
        self._http_client = http_client

    def _build_headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ConfigurationError("NIA_API_KEY environment variable is not set")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _get_endpoint_url(self, endpoint: str) -> str:
        return f"{self.base_url}{endpoint}"

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        json: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Response:
        """Send one request and return the successful response.

        Raises:
            ConfigurationError: If no API key is configured
            UpstreamError: If the API answers with a non-2xx status
        """
        headers = self._build_headers()
        url = self._get_endpoint_url(endpoint)
        kwargs: Dict[str, Any] = {"headers": headers}
        if params:
            kwargs["params"] = drop_none(params)
        if json is not None:
            kwargs["json"] = drop_none(json)

        if self._http_client is not None:
            resp = await self._http_client.request(method, url, **kwargs)
        else:
            async with httpx.AsyncClient() as client:
                resp = await client.request(method, url, **kwargs)

        if not resp.is_success:
            logger.error(
                f"Nia API {method} {endpoint} failed with {resp.status_code}",
                extra={"status_code": resp.status_code},
            )
            raise UpstreamError(resp.status_code, resp.text)
        return resp

    @staticmethod
    def parse(model: Type[ResponseT], resp: httpx.Response, endpoint: str) -> ResponseT:
        """Validate a response body against its schema."""
        try:
            return model.model_validate(resp.json())
        except ValueError as e:
            # ValidationError and JSONDecodeError are both ValueErrors
            detail = e.errors(include_url=False) if isinstance(e, ValidationError) else str(e)
            raise UpstreamResponseError(endpoint, str(detail)) from e

    async def _get(self, endpoint: str, model: Type[ResponseT], params=None) -> ResponseT:
        resp = await self.request("GET", endpoint, params=params)
        return self.parse(model, resp, endpoint)

    async def _post(self, endpoint: str, model: Type[ResponseT], body) -> ResponseT:
        resp = await self.request("POST", endpoint, json=body)
        return self.parse(model, resp, endpoint)

    @staticmethod
    def _source_path(source_id: str, repository: bool) -> str:
        if repository:
            return f"/repositories/{encode_id(source_id)}"
        return f"/data-sources/{encode_id(source_id)}"

    async def query(self, body: Mapping[str, Any]) -> QueryResponse:
        return await self._post(self.query_path, QueryResponse, body)

    # Tree, ls and read exist for documentation data sources only
    async def tree(self, source_id: str) -> TreeResponse:
        return await self._get(f"{self._source_path(source_id, False)}/tree", TreeResponse)

    async def ls(self, source_id: str, path: str = "/") -> ListResponse:
        return await self._get(
            f"{self._source_path(source_id, False)}/ls", ListResponse, params={"path": path}
        )

    async def read(self, source_id: str, path: str) -> ReadResponse:
        return await self._get(
            f"{self._source_path(source_id, False)}/read", ReadResponse, params={"path": path}
        )

    async def grep(
        self, source_id: str, body: Mapping[str, Any], repository: bool = False
    ) -> GrepResponse:
        return await self._post(f"{self._source_path(source_id, repository)}/grep", GrepResponse, body)

    async def web_search(self, body: Mapping[str, Any]) -> WebSearchResponse:
        return await self._post(self.web_search_path, WebSearchResponse, body)

    async def source_content(self, body: Mapping[str, Any]) -> SourceContentResponse:
        return await self._post("/sources/content", SourceContentResponse, body)

"""Response schemas for the Nia search API.

One model per endpoint. Required fields are the ones the tools read; a
response missing them (or carrying the wrong type) fails validation instead
of silently defaulting. Unknown fields are kept.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class NiaResponse(BaseModel):
    model_config = ConfigDict(extra="allow")


class QueryResponse(NiaResponse):
    """POST /query (or /search/query)."""
    sources: list[Any] = Field(default_factory=list)


class TreeResponse(NiaResponse):
    """GET /data-sources/{id}/tree."""
    tree_string: str
    page_count: Optional[int] = None
    base_url: Optional[str] = None


class ListResponse(NiaResponse):
    """GET /data-sources/{id}/ls."""
    path: str
    directories: list[Any] = Field(default_factory=list)
    files: list[Any] = Field(default_factory=list)
    total: int


class ReadResponse(NiaResponse):
    """GET /data-sources/{id}/read."""
    path: str
    url: Optional[str] = None
    content: str


class GrepResponse(NiaResponse):
    """POST /data-sources/{id}/grep and /repositories/{id}/grep."""
    matches: Any = None
    files: Optional[list[Any]] = None
    counts: Any = None
    pattern: str
    path_filter: Optional[str] = None
    total_matches: int
    files_searched: int
    files_with_matches: Optional[int] = None
    truncated: Optional[bool] = None
    options: Optional[dict[str, Any]] = None


class WebSearchResponse(NiaResponse):
    """POST /web-search (or /search/web)."""
    github_repos: list[Any] = Field(default_factory=list)
    documentation: list[Any] = Field(default_factory=list)
    general: list[Any] = Field(default_factory=list)

    @property
    def result_count(self) -> int:
        return len(self.github_repos) + len(self.documentation) + len(self.general)


class SourceContentResponse(NiaResponse):
    """POST /sources/content."""
    success: bool
    content: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None

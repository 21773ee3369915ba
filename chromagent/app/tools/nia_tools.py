"""Nia tool builders.

Each builder returns a :class:`Tool` bound to a :class:`NiaClient`. Agent
profiles pick names, descriptions and source resolvers; the request and
response handling lives here.
"""

from typing import Any, Callable, Dict, List, Optional

from chromagent.app.exceptions import ToolValidationError
from chromagent.app.nia.client import NiaClient
from chromagent.app.nia.schemas import WebSearchResponse
from chromagent.app.tools.base import Tool, ToolOutput
from chromagent.app.tools.params import (
    BrowseInput,
    GrepCodeInput,
    GrepDocsInput,
    ListDirectoryInput,
    ReadDocumentInput,
    ScopedSearchInput,
    SourceContentInput,
    SubtreeSearchInput,
    WebSearchInput,
)
from chromagent.app.tools.sources import SourceCatalog

SourceResolver = Callable[[], str]
ScopeResolver = Callable[[], Dict[str, List[str]]]


class TreeResult(ToolOutput):
    tree: str
    page_count: Optional[int] = None
    base_url: Optional[str] = None
    source_id: str


class DirectoryResult(ToolOutput):
    path: str
    directories: List[Any]
    files: List[Any]
    total: int
    source_id: str


class DocumentResult(ToolOutput):
    path: str
    url: Optional[str] = None
    content: str
    source_id: str


class GrepResult(ToolOutput):
    matches: Any = None
    files: Optional[List[Any]] = None
    counts: Any = None
    pattern: str
    path_filter: Optional[str] = None
    total_matches: int
    files_searched: int
    files_with_matches: Optional[int] = None
    truncated: Optional[bool] = None
    options: Optional[Dict[str, Any]] = None
    source_id: Optional[str] = None
    subtree: Optional[str] = None
    repository_id: Optional[str] = None


class SourceContentResult(ToolOutput):
    success: bool
    content: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


def search_mode(docs: List[str], repos: List[str]) -> str:
    if docs and repos:
        return "unified"
    if repos:
        return "repositories"
    return "sources"


def query_body(query: str, docs: List[str], repos: List[str]) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "messages": [{"role": "user", "content": query}],
        "search_mode": search_mode(docs, repos),
        "include_sources": True,
    }
    if docs:
        body["data_sources"] = docs
    if repos:
        body["repositories"] = repos
    return body


def _count_sources(data: Dict[str, Any]) -> str:
    return f"Found {len(data.get('sources') or [])} sources"


def subtree_search_tool(
    client: NiaClient,
    catalog: SourceCatalog,
    name: str,
    description: str,
) -> Tool:
    """Semantic search over repository subtrees plus documentation."""

    async def handler(args: SubtreeSearchInput) -> Dict[str, Any]:
        catalog.require_any()
        repos = catalog.resolve_subtrees(args.subtrees)
        docs = list(catalog.docs) if args.include_docs else []
        if not docs and not repos:
            raise ToolValidationError(
                "Nothing to search: no repositories configured and includeDocs is false",
                tool_name=name,
            )
        data = await client.query(query_body(args.query, docs, repos))
        return data.model_dump()

    return Tool(name, description, SubtreeSearchInput, handler, summarize=_count_sources)


def scoped_search_tool(
    client: NiaClient,
    scopes: ScopeResolver,
    name: str,
    description: str,
) -> Tool:
    """Semantic search over data sources grouped into named scopes."""

    async def handler(args: ScopedSearchInput) -> Dict[str, Any]:
        available = scopes()
        if args.scope:
            invalid = [s for s in args.scope if s not in available]
            if invalid:
                raise ToolValidationError(
                    f"Invalid scope: {', '.join(invalid)}. Available: {', '.join(available)}",
                    tool_name=name,
                )
            selected = [s for s in available if s in args.scope]
        else:
            selected = list(available)

        docs = list(dict.fromkeys(sid for s in selected for sid in available[s]))
        data = await client.query(query_body(args.query, docs, []))
        return data.model_dump()

    return Tool(name, description, ScopedSearchInput, handler, summarize=_count_sources)


def browse_tool(client: NiaClient, default_source: SourceResolver, name: str, description: str) -> Tool:
    """Full tree of a documentation source."""

    async def handler(args: BrowseInput) -> TreeResult:
        source_id = args.source_id or default_source()
        data = await client.tree(source_id)
        return TreeResult(
            tree=data.tree_string,
            page_count=data.page_count,
            base_url=data.base_url,
            source_id=source_id,
        )

    return Tool(
        name, description, BrowseInput, handler,
        summarize=lambda r: f"Found {r.page_count} pages",
    )


def list_directory_tool(client: NiaClient, default_source: SourceResolver, name: str, description: str) -> Tool:
    """Entries of one virtual directory."""

    async def handler(args: ListDirectoryInput) -> DirectoryResult:
        source_id = args.source_id or default_source()
        data = await client.ls(source_id, args.path)
        return DirectoryResult(
            path=data.path,
            directories=data.directories,
            files=data.files,
            total=data.total,
            source_id=source_id,
        )

    return Tool(
        name, description, ListDirectoryInput, handler,
        summarize=lambda r: f"Found {r.total} items at {r.path}",
    )


def read_document_tool(client: NiaClient, default_source: SourceResolver, name: str, description: str) -> Tool:
    """Full text of one document."""

    async def handler(args: ReadDocumentInput) -> DocumentResult:
        source_id = args.source_id or default_source()
        data = await client.read(source_id, args.path)
        return DocumentResult(path=data.path, url=data.url, content=data.content, source_id=source_id)

    return Tool(
        name, description, ReadDocumentInput, handler,
        summarize=lambda r: f"Read {len(r.content)} chars from {r.path} ({r.url})",
    )


def grep_docs_tool(client: NiaClient, default_source: SourceResolver, name: str, description: str) -> Tool:
    """Regex search over a documentation source."""

    async def handler(args: GrepDocsInput) -> GrepResult:
        source_id = args.source_id or default_source()
        data = await client.grep(source_id, args.request_body())
        return GrepResult(
            matches=data.matches,
            files=data.files,
            counts=data.counts,
            pattern=data.pattern,
            path_filter=data.path_filter,
            total_matches=data.total_matches,
            files_searched=data.files_searched,
            source_id=source_id,
        )

    return Tool(
        name, description, GrepDocsInput, handler,
        summarize=lambda r: f"Found {r.total_matches} matches in {r.files_searched} files",
    )


def grep_code_tool(client: NiaClient, catalog: SourceCatalog, name: str, description: str) -> Tool:
    """Regex search over one repository subtree."""

    async def handler(args: GrepCodeInput) -> GrepResult:
        repo_id = catalog.resolve_subtree(args.subtree)
        data = await client.grep(repo_id, args.request_body(), repository=True)
        return GrepResult(
            matches=data.matches,
            files=data.files,
            counts=data.counts,
            pattern=data.pattern,
            path_filter=data.path_filter,
            total_matches=data.total_matches,
            files_searched=data.files_searched,
            files_with_matches=data.files_with_matches,
            truncated=data.truncated,
            options=data.options,
            subtree=catalog.short_name(repo_id),
            repository_id=repo_id,
        )

    return Tool(
        name, description, GrepCodeInput, handler,
        summarize=lambda r: (
            f"Found {r.total_matches} matches in {r.files_with_matches or 0} files "
            f"(subtree: {r.subtree})"
        ),
    )


def web_search_tool(client: NiaClient, description: str, name: str = "webSearch") -> Tool:
    """External web search; usage policy lives in the description only."""

    async def handler(args: WebSearchInput) -> WebSearchResponse:
        return await client.web_search(args.request_body())

    return Tool(
        name, description, WebSearchInput, handler,
        summarize=lambda r: f"Found {r.result_count} web results",
    )


def source_content_tool(client: NiaClient, description: str, name: str = "getSourceContent") -> Tool:
    """Fetch a source by the identifier found in an earlier search result."""

    async def handler(args: SourceContentInput) -> SourceContentResult:
        data = await client.source_content({
            "source_type": args.source_type,
            "source_identifier": args.source_identifier,
            "metadata": args.metadata or None,
        })
        return SourceContentResult(success=data.success, content=data.content, metadata=data.metadata)

    return Tool(
        name, description, SourceContentInput, handler,
        summarize=lambda r: f"Retrieved {len(r.content or '')} chars",
    )

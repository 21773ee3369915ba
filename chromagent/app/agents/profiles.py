"""Agent profiles: a system prompt plus the tool set it is allowed to use.

The three chat front-ends share one service; ``AGENT_PROFILE`` picks which
one runs.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List

from chromagent.app.agents.prompts import (
    CHROMIUM_SYSTEM_PROMPT,
    EPSTEIN_SYSTEM_PROMPT,
    NAVAL_SYSTEM_PROMPT,
)
from chromagent.app.exceptions import ConfigurationError
from chromagent.app.nia.client import NiaClient
from chromagent.app.tools import nia_tools
from chromagent.app.tools.base import Tool, ToolRegistry
from chromagent.app.tools.sources import SourceCatalog

ToolFactory = Callable[[NiaClient, SourceCatalog], List[Tool]]

WEB_SEARCH_DESCRIPTION = (
    "Search the web for information not available in your indexed sources. "
    "Use sparingly - prefer the indexed search tools first."
)

SOURCE_CONTENT_DESCRIPTION = (
    "Retrieve the full content of a specific source file or document from search "
    "results. Use this when you have a source identifier from a search result."
)


@dataclass(frozen=True)
class AgentProfile:
    name: str
    title: str
    system_prompt: str
    build_tools: ToolFactory

    def registry(self, client: NiaClient, catalog: SourceCatalog) -> ToolRegistry:
        return ToolRegistry(self.build_tools(client, catalog))


def chromium_tools(client: NiaClient, catalog: SourceCatalog) -> List[Tool]:
    docs = catalog.default_doc_source
    return [
        nia_tools.subtree_search_tool(
            client, catalog, "searchChromium",
            "Search the Chromium codebase and documentation using semantic search. "
            "Specify relevant subtrees to avoid slow searches across every repo. "
            "Subtree guide: base (threading, CommandLine, logging), net (HTTP, sockets, DNS), "
            "content (multi-process, RenderFrame), chrome (browser UI, flags), "
            "components (autofill, sync), ui (views, gfx), gpu, mojo (IPC), services, "
            "cc (compositor), storage (IndexedDB, quota), extensions.",
        ),
        nia_tools.browse_tool(
            client, docs, "browseChromiumDocs",
            "Get the complete tree structure of an indexed Chromium documentation source. "
            "Use this to explore available docs pages and their organization.",
        ),
        nia_tools.list_directory_tool(
            client, docs, "listChromiumDocsDirectory",
            "List content in a virtual directory path within an indexed Chromium "
            "documentation source. Use browseChromiumDocs first to discover paths.",
        ),
        nia_tools.read_document_tool(
            client, docs, "readChromiumDoc",
            "Read the full content of a document by its virtual path within an indexed "
            "Chromium documentation source. Use after searchChromium or browseChromiumDocs.",
        ),
        nia_tools.grep_docs_tool(
            client, docs, "grepChromiumDocs",
            "Search indexed Chromium documentation using a regex pattern. Use this to find "
            "specific terms, identifiers, or text patterns in the docs.",
        ),
        nia_tools.grep_code_tool(
            client, catalog, "grepChromiumCode",
            "Search indexed Chromium repository code using a regex pattern, like grep for the "
            "codebase. Finds function definitions, class names, error strings, flags and GN "
            "targets. Each subtree is indexed separately; specify the one to search.",
        ),
        nia_tools.web_search_tool(client, WEB_SEARCH_DESCRIPTION),
        nia_tools.source_content_tool(client, SOURCE_CONTENT_DESCRIPTION),
    ]


def epstein_tools(client: NiaClient, catalog: SourceCatalog) -> List[Tool]:
    archive = catalog.default_archive_source
    return [
        nia_tools.scoped_search_tool(
            client, catalog.archive_scopes, "searchArchive",
            "Semantic search over the indexed archive. scope: 'archives' for court filings "
            "and records, 'biographies' for background on people. Omit scope to search both.",
        ),
        nia_tools.browse_tool(
            client, archive, "browseArchive",
            "Get the tree structure of an archive source to see which documents exist.",
        ),
        nia_tools.list_directory_tool(
            client, archive, "listArchiveDirectory",
            "List documents in a virtual directory of an archive source.",
        ),
        nia_tools.read_document_tool(
            client, archive, "readArchiveDocument",
            "Read the full text of an archive document by its virtual path.",
        ),
        nia_tools.grep_docs_tool(
            client, archive, "grepArchive",
            "Regex search across archive documents for exact names, case numbers and phrases.",
        ),
        nia_tools.web_search_tool(client, WEB_SEARCH_DESCRIPTION),
        nia_tools.source_content_tool(client, SOURCE_CONTENT_DESCRIPTION),
    ]


def naval_tools(client: NiaClient, catalog: SourceCatalog) -> List[Tool]:
    source = catalog.require_single_source
    return [
        nia_tools.scoped_search_tool(
            client, lambda: {"naval": [catalog.require_single_source()]}, "searchNaval",
            "Semantic search over Naval Ravikant's writing, podcasts and interviews.",
        ),
        nia_tools.browse_tool(
            client, source, "browseNaval",
            "Get the tree structure of the Naval collection.",
        ),
        nia_tools.list_directory_tool(
            client, source, "listNavalDirectory",
            "List pages in a virtual directory of the Naval collection.",
        ),
        nia_tools.read_document_tool(
            client, source, "readNaval",
            "Read the full text of a page in the Naval collection by its virtual path.",
        ),
        nia_tools.grep_docs_tool(
            client, source, "grepNaval",
            "Regex search across the Naval collection for exact phrases.",
        ),
        nia_tools.web_search_tool(client, WEB_SEARCH_DESCRIPTION),
    ]


PROFILES: Dict[str, AgentProfile] = {
    "chromium": AgentProfile("chromium", "ChromAgent", CHROMIUM_SYSTEM_PROMPT, chromium_tools),
    "epstein": AgentProfile("epstein", "Epstein Files", EPSTEIN_SYSTEM_PROMPT, epstein_tools),
    "naval": AgentProfile("naval", "Naval Agent", NAVAL_SYSTEM_PROMPT, naval_tools),
}


def get_profile(name: str) -> AgentProfile:
    try:
        return PROFILES[name.strip().lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown AGENT_PROFILE '{name}'. Available: {', '.join(PROFILES)}"
        ) from None

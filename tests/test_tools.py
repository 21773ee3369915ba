"""Tests for the Nia tools and the tool registry."""

import json
from unittest.mock import patch

import pytest
from httpx import Response

from chromagent.app.agents.profiles import chromium_tools
from chromagent.app.exceptions import (
    ConfigurationError,
    ToolValidationError,
    UnknownToolError,
    UpstreamError,
)
from chromagent.app.nia.schemas import WebSearchResponse
from chromagent.app.tools import base as tools_base
from chromagent.app.tools.base import ToolCall, ToolRegistry
from chromagent.app.tools.params import GrepCodeInput, GrepDocsInput, WebSearchInput
from chromagent.app.tools.sources import SourceCatalog

from tests.conftest import NIA_BASE

BASE_GREP_URL = f"{NIA_BASE}/repositories/chromium%2Fchromium%2Ftree%2Fmain%2Fbase/grep"

GREP_RESPONSE = {
    "matches": [
        {"path": "base/files/file_util.cc", "line_number": 12, "line": "foo()"},
        {"path": "base/files/file_path.cc", "line_number": 40, "line": "foo_bar"},
    ],
    "files": ["base/files/file_util.cc", "base/files/file_path.cc"],
    "counts": {"base/files/file_util.cc": 1, "base/files/file_path.cc": 1},
    "pattern": "foo",
    "path_filter": "base/files",
    "total_matches": 2,
    "files_searched": 17,
    "files_with_matches": 2,
    "truncated": False,
}


@pytest.fixture
def registry(nia_client, catalog) -> ToolRegistry:
    return ToolRegistry(chromium_tools(nia_client, catalog))


def _body(route) -> dict:
    return json.loads(route.calls.last.request.content)


class TestGrepInput:

    def test_caps_are_clamped(self):
        args = GrepDocsInput.model_validate({
            "pattern": "foo",
            "maxTotalMatches": 5000,
            "maxMatchesPerFile": 0,
            "contextLines": 50,
            "linesAfter": -3,
            "linesBefore": 99,
        })
        assert args.max_total_matches == 1000
        assert args.max_matches_per_file == 1
        assert args.context_lines == 10
        assert args.lines_after == 0
        assert args.lines_before == 20

    def test_in_range_values_pass_through(self):
        args = GrepDocsInput.model_validate({"pattern": "foo", "maxTotalMatches": 250, "maxMatchesPerFile": 7})
        assert args.max_total_matches == 250
        assert args.max_matches_per_file == 7

    def test_body_omits_unset_options(self):
        body = GrepDocsInput(pattern="foo").request_body()
        assert body == {
            "pattern": "foo",
            "context_lines": 3,
            "case_sensitive": False,
            "whole_word": False,
            "fixed_string": False,
            "max_matches_per_file": 10,
            "max_total_matches": 100,
            "output_mode": "content",
            "highlight": False,
        }
        assert None not in body.values()

    def test_body_maps_asymmetric_context(self):
        body = GrepDocsInput(pattern="foo", path="/guides", lines_after=2, lines_before=5).request_body()
        assert body["path"] == "/guides"
        assert body["A"] == 2
        assert body["B"] == 5

    def test_code_body_adds_code_options(self):
        body = GrepCodeInput(pattern="foo", exhaustive=False).request_body()
        assert body["exhaustive"] is False
        assert body["include_line_numbers"] is True
        assert body["group_by_file"] is True
        assert "path" not in body

    def test_invalid_output_mode_rejected(self):
        with pytest.raises(ValueError):
            GrepDocsInput.model_validate({"pattern": "foo", "outputMode": "everything"})

    def test_web_search_body(self):
        args = WebSearchInput.model_validate({"query": "v8 isolates", "numResults": 50, "category": "blog"})
        assert args.request_body() == {"query": "v8 isolates", "num_results": 10, "category": "blog"}


class TestToolRegistry:

    def test_catalogue_names(self, registry):
        assert registry.names == [
            "searchChromium",
            "browseChromiumDocs",
            "listChromiumDocsDirectory",
            "readChromiumDoc",
            "grepChromiumDocs",
            "grepChromiumCode",
            "webSearch",
            "getSourceContent",
        ]

    def test_schemas_use_camel_case(self, registry):
        schema = registry.get("grepChromiumCode").schema()
        assert schema["type"] == "function"
        properties = schema["function"]["parameters"]["properties"]
        assert "maxMatchesPerFile" in properties
        assert properties["maxTotalMatches"]["maximum"] == 1000
        assert schema["function"]["parameters"]["required"] == ["pattern"]

    def test_duplicate_registration_rejected(self, registry):
        with pytest.raises(ValueError):
            registry.register(registry.get("webSearch"))

    @pytest.mark.asyncio
    async def test_unknown_tool(self, registry):
        with pytest.raises(UnknownToolError) as exc_info:
            await registry.execute(ToolCall("deleteEverything", {}))
        assert "searchChromium" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_validation_error_before_request(self, registry, nia_api):
        with pytest.raises(ToolValidationError, match="readChromiumDoc: path"):
            await registry.execute(ToolCall("readChromiumDoc", {}))
        assert len(nia_api.calls) == 0

    def test_call_id_generated(self):
        assert ToolCall("webSearch").call_id.startswith("call_")


class TestSearchChromium:

    @pytest.mark.asyncio
    async def test_unified_search_with_subtrees(self, registry, nia_api):
        route = nia_api.post(f"{NIA_BASE}/query").mock(
            return_value=Response(200, json={"sources": [{"path": "net/http/http_cache.cc"}]})
        )

        result = await registry.execute(ToolCall("searchChromium", {"query": "http cache", "subtrees": ["net"]}))

        assert result["sources"] == [{"path": "net/http/http_cache.cc"}]
        body = _body(route)
        assert body["search_mode"] == "unified"
        assert body["repositories"] == ["chromium/chromium/tree/main/net"]
        assert body["data_sources"] == ["doc-1", "doc-2"]
        assert body["include_sources"] is True
        assert body["messages"] == [{"role": "user", "content": "http cache"}]

    @pytest.mark.asyncio
    async def test_repositories_only_without_docs(self, registry, nia_api):
        route = nia_api.post(f"{NIA_BASE}/query").mock(return_value=Response(200, json={"sources": []}))

        await registry.execute(ToolCall("searchChromium", {"query": "x", "includeDocs": False}))

        body = _body(route)
        assert body["search_mode"] == "repositories"
        assert len(body["repositories"]) == 3
        assert "data_sources" not in body

    @pytest.mark.asyncio
    async def test_unknown_subtree_rejected_without_request(self, registry, nia_api):
        route = nia_api.post(f"{NIA_BASE}/query").mock(return_value=Response(200, json={"sources": []}))

        with pytest.raises(ToolValidationError) as exc_info:
            await registry.execute(ToolCall("searchChromium", {"query": "x", "subtrees": ["net", "v8"]}))

        assert str(exc_info.value) == "Invalid subtrees: v8. Available: base, net, content"
        assert not route.called

    @pytest.mark.asyncio
    async def test_no_sources_configured(self, nia_client, nia_api):
        registry = ToolRegistry(chromium_tools(nia_client, SourceCatalog()))

        with pytest.raises(ConfigurationError, match="No Chromium sources configured"):
            await registry.execute(ToolCall("searchChromium", {"query": "x"}))
        assert len(nia_api.calls) == 0

    @pytest.mark.asyncio
    async def test_upstream_error_propagates(self, registry, nia_api):
        nia_api.post(f"{NIA_BASE}/query").mock(return_value=Response(500, text="index unavailable"))

        with pytest.raises(UpstreamError, match="index unavailable"):
            await registry.execute(ToolCall("searchChromium", {"query": "x"}))


class TestDocsTools:

    @pytest.mark.asyncio
    async def test_browse_defaults_to_first_doc_source(self, registry, nia_api):
        nia_api.get(f"{NIA_BASE}/data-sources/doc-1/tree").mock(
            return_value=Response(200, json={
                "tree_string": "docs/\n  README.md",
                "page_count": 12,
                "base_url": "https://chromium.googlesource.com",
            })
        )

        result = await registry.execute(ToolCall("browseChromiumDocs", {}))

        assert result == {
            "tree": "docs/\n  README.md",
            "pageCount": 12,
            "baseUrl": "https://chromium.googlesource.com",
            "sourceId": "doc-1",
        }

    @pytest.mark.asyncio
    async def test_browse_explicit_source(self, registry, nia_api):
        route = nia_api.get(f"{NIA_BASE}/data-sources/doc-2/tree").mock(
            return_value=Response(200, json={"tree_string": "", "page_count": 4})
        )

        result = await registry.execute(ToolCall("browseChromiumDocs", {"sourceId": "doc-2"}))

        assert route.called
        assert result["pageCount"] == 4
        assert result["sourceId"] == "doc-2"

    @pytest.mark.asyncio
    async def test_docs_tools_need_doc_sources(self, nia_client, nia_api):
        catalog = SourceCatalog(repos=["chromium/chromium/tree/main/base"])
        registry = ToolRegistry(chromium_tools(nia_client, catalog))

        with pytest.raises(ConfigurationError, match="CHROMIUM_DOCS_SOURCES"):
            await registry.execute(ToolCall("listChromiumDocsDirectory", {}))
        assert len(nia_api.calls) == 0

    @pytest.mark.asyncio
    async def test_list_directory(self, registry, nia_api):
        route = nia_api.get(url__startswith=f"{NIA_BASE}/data-sources/doc-1/ls").mock(
            return_value=Response(200, json={
                "path": "/", "directories": ["design"], "files": ["README.md"], "total": 2,
            })
        )

        result = await registry.execute(ToolCall("listChromiumDocsDirectory", {}))

        assert route.calls.last.request.url.params["path"] == "/"
        assert result["total"] == 2
        assert result["directories"] == ["design"]

    @pytest.mark.asyncio
    async def test_read_document(self, registry, nia_api):
        nia_api.get(url__startswith=f"{NIA_BASE}/data-sources/doc-1/read").mock(
            return_value=Response(200, json={
                "path": "/design/mojo.md",
                "url": "https://chromium.googlesource.com/design/mojo.md",
                "content": "# Mojo",
            })
        )

        result = await registry.execute(ToolCall("readChromiumDoc", {"path": "/design/mojo.md"}))

        assert result["content"] == "# Mojo"
        assert result["url"].endswith("mojo.md")

    @pytest.mark.asyncio
    async def test_grep_docs_result_shape(self, registry, nia_api):
        route = nia_api.post(f"{NIA_BASE}/data-sources/doc-1/grep").mock(
            return_value=Response(200, json={**GREP_RESPONSE, "path_filter": None})
        )

        result = await registry.execute(ToolCall("grepChromiumDocs", {"pattern": "foo", "maxTotalMatches": 5000}))

        assert _body(route)["max_total_matches"] == 1000
        assert result["totalMatches"] == 2
        assert result["filesSearched"] == 17
        assert result["sourceId"] == "doc-1"
        assert "filesWithMatches" not in result


class TestGrepChromiumCode:

    @pytest.mark.asyncio
    async def test_defaults_to_base_subtree(self, registry, nia_api):
        route = nia_api.post(BASE_GREP_URL).mock(return_value=Response(200, json=GREP_RESPONSE))

        result = await registry.execute(ToolCall("grepChromiumCode", {"pattern": "foo"}))

        assert route.called
        assert result["subtree"] == "base"
        assert result["repositoryId"] == "chromium/chromium/tree/main/base"
        assert result["filesWithMatches"] == 2
        assert result["truncated"] is False

    @pytest.mark.asyncio
    async def test_path_filter_scenario(self, registry, nia_api):
        route = nia_api.post(BASE_GREP_URL).mock(return_value=Response(200, json=GREP_RESPONSE))

        result = await registry.execute(ToolCall("grepChromiumCode", {
            "pattern": "foo",
            "path": "base/files",
            "maxMatchesPerFile": 10,
            "outputMode": "content",
        }))

        body = _body(route)
        assert body["path"] == "base/files"
        assert body["max_matches_per_file"] == 10
        assert body["output_mode"] == "content"
        assert all(m["path"].startswith("base/files") for m in result["matches"])
        assert result["pathFilter"] == "base/files"

    @pytest.mark.asyncio
    async def test_unknown_subtree_rejected(self, registry, nia_api):
        with pytest.raises(ToolValidationError, match="Subtree 'v8' not found. Available: base, net, content"):
            await registry.execute(ToolCall("grepChromiumCode", {"pattern": "foo", "subtree": "v8"}))
        assert len(nia_api.calls) == 0


class TestOtherTools:

    @pytest.mark.asyncio
    async def test_web_search_omits_unset_filters(self, registry, nia_api):
        route = nia_api.post(f"{NIA_BASE}/web-search").mock(
            return_value=Response(200, json={"github_repos": [{"url": "x"}], "general": []})
        )

        result = await registry.execute(ToolCall("webSearch", {"query": "blink rendering"}))

        assert _body(route) == {"query": "blink rendering", "num_results": 5}
        assert result["github_repos"] == [{"url": "x"}]

    def test_web_search_summary_counts_all_categories(self, registry):
        data = WebSearchResponse(
            github_repos=[{"url": "a"}],
            documentation=[{"url": "b"}, {"url": "c"}],
            general=[{"url": "d"}],
        )

        assert data.result_count == 4
        assert registry.get("webSearch").summarize(data) == "Found 4 web results"

    @pytest.mark.asyncio
    async def test_execute_logs_call_context(self, registry, nia_api):
        nia_api.post(f"{NIA_BASE}/web-search").mock(
            return_value=Response(200, json={"general": [{"url": "x"}]})
        )

        with patch.object(tools_base.logger, "info") as log_info:
            await registry.execute(ToolCall("webSearch", {"query": "q"}, call_id="call_1"))

        started, finished = (c.kwargs["extra"] for c in log_info.call_args_list)
        assert started == {"tool_name": "webSearch", "call_id": "call_1"}
        assert finished["duration_ms"] >= 0
        assert "Found 1 web results" in log_info.call_args_list[1].args[0]

    @pytest.mark.asyncio
    async def test_get_source_content(self, registry, nia_api):
        route = nia_api.post(f"{NIA_BASE}/sources/content").mock(
            return_value=Response(200, json={"success": True, "content": "int main() {}", "metadata": {"lines": 1}})
        )

        result = await registry.execute(ToolCall("getSourceContent", {
            "sourceType": "repository",
            "sourceIdentifier": "chromium/chromium:base/main.cc",
        }))

        assert _body(route) == {
            "source_type": "repository",
            "source_identifier": "chromium/chromium:base/main.cc",
        }
        assert result == {"success": True, "content": "int main() {}", "metadata": {"lines": 1}}

    @pytest.mark.asyncio
    async def test_get_source_content_rejects_bad_type(self, registry, nia_api):
        with pytest.raises(ToolValidationError, match="sourceType"):
            await registry.execute(ToolCall("getSourceContent", {
                "sourceType": "website",
                "sourceIdentifier": "x",
            }))

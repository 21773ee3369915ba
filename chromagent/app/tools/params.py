"""Argument models shared by the Nia tools.

Numeric caps are clamped into their documented bounds instead of rejected,
so an over-eager model still gets a useful answer. Wrong types and unknown
enum values are rejected.
"""

from typing import Annotated, Any, Dict, Literal, Optional

from pydantic import AfterValidator, Field

from chromagent.app.tools.base import ToolInput


def clamp(low: int, high: int) -> AfterValidator:
    """Validator pinning an int into [low, high]."""
    def _clamp(v: Optional[int]) -> Optional[int]:
        if v is None:
            return v
        return min(max(v, low), high)
    return AfterValidator(_clamp)


MaxMatchesPerFile = Annotated[int, clamp(1, 100)]
MaxTotalMatches = Annotated[int, clamp(1, 1000)]
ContextLines = Annotated[Optional[int], clamp(0, 10)]
SideContextLines = Annotated[Optional[int], clamp(0, 20)]
NumResults = Annotated[int, clamp(1, 10)]

OutputMode = Literal["content", "files_with_matches", "count"]
WebCategory = Literal["github", "company", "research", "news", "tweet", "pdf", "blog"]

# Default lines of context sent when the caller gives none
DEFAULT_CONTEXT_LINES = 3

SOURCE_ID_DESCRIPTION = "Optional: specific source id (defaults to the first configured source)"


class SubtreeSearchInput(ToolInput):
    query: str = Field(..., min_length=1, description="The search query - a question or topic to search for")
    subtrees: Optional[list[str]] = Field(
        default=None,
        description=(
            "Which subtrees to search (e.g., ['base', 'net', 'content']). "
            "If omitted, searches ALL repos (slow!). Pick 1-5 relevant ones."
        ),
    )
    include_docs: bool = Field(
        default=True, description="Include documentation sources in search (default true)"
    )


class ScopedSearchInput(ToolInput):
    query: str = Field(..., min_length=1, description="The search query - a question or topic to search for")
    scope: Optional[list[str]] = Field(
        default=None,
        description="Optional: limit the search to these source categories. Omit to search all.",
    )


class BrowseInput(ToolInput):
    source_id: Optional[str] = Field(default=None, description=SOURCE_ID_DESCRIPTION)


class ListDirectoryInput(ToolInput):
    path: str = Field(default="/", description='Virtual path to list (e.g., "/" for root).')
    source_id: Optional[str] = Field(default=None, description=SOURCE_ID_DESCRIPTION)


class ReadDocumentInput(ToolInput):
    path: str = Field(..., min_length=1, description='Virtual path to read (e.g., "/docs/something.md").')
    source_id: Optional[str] = Field(default=None, description=SOURCE_ID_DESCRIPTION)


class GrepInput(ToolInput):
    """Options common to document and code grep."""
    pattern: str = Field(..., min_length=1, description="Regex pattern to search for (e.g., 'RenderFrame.*Host')")
    path: str = Field(default="/", description="Limit search to this virtual path prefix")
    context_lines: ContextLines = Field(
        default=None,
        description="Lines before AND after each match (default: 3)",
        json_schema_extra={"minimum": 0, "maximum": 10},
    )
    lines_after: SideContextLines = Field(
        default=None,
        description="Lines after each match (like grep -A). Overrides contextLines for after.",
        json_schema_extra={"minimum": 0, "maximum": 20},
    )
    lines_before: SideContextLines = Field(
        default=None,
        description="Lines before each match (like grep -B). Overrides contextLines for before.",
        json_schema_extra={"minimum": 0, "maximum": 20},
    )
    case_sensitive: bool = Field(default=False, description="Case-sensitive matching (default is case-insensitive)")
    whole_word: bool = Field(default=False, description="Match whole words only")
    fixed_string: bool = Field(default=False, description="Treat pattern as literal string, not regex")
    max_matches_per_file: MaxMatchesPerFile = Field(
        default=10,
        description="Maximum matches to return per file",
        json_schema_extra={"minimum": 1, "maximum": 100},
    )
    max_total_matches: MaxTotalMatches = Field(
        default=100,
        description="Maximum total matches to return",
        json_schema_extra={"minimum": 1, "maximum": 1000},
    )
    output_mode: OutputMode = Field(
        default="content",
        description=(
            "Output format: content (matched lines), files_with_matches "
            "(file paths only), count (match counts)"
        ),
    )
    highlight: bool = Field(default=False, description="Add >>markers<< around matched text in results")

    def request_body(self) -> Dict[str, Any]:
        """Upstream grep body; options left unset are omitted."""
        body: Dict[str, Any] = {
            "pattern": self.pattern,
            "context_lines": self.context_lines if self.context_lines is not None else DEFAULT_CONTEXT_LINES,
            "path": self.path if self.path and self.path != "/" else None,
            "A": self.lines_after,
            "B": self.lines_before,
            "case_sensitive": self.case_sensitive,
            "whole_word": self.whole_word,
            "fixed_string": self.fixed_string,
            "max_matches_per_file": self.max_matches_per_file,
            "max_total_matches": self.max_total_matches,
            "output_mode": self.output_mode,
            "highlight": self.highlight,
        }
        return {k: v for k, v in body.items() if v is not None}


class GrepDocsInput(GrepInput):
    source_id: Optional[str] = Field(default=None, description=SOURCE_ID_DESCRIPTION)


class GrepCodeInput(GrepInput):
    subtree: Optional[str] = Field(
        default=None,
        description=(
            "Which subtree to search (e.g., 'base', 'chrome', 'content', 'net', "
            "'ui', 'gpu', 'mojo', 'services'). Defaults to 'base'."
        ),
    )
    path: str = Field(default="", description="Limit search to files with this path prefix within the subtree")
    include_line_numbers: bool = Field(default=True, description="Include line numbers in results")
    group_by_file: bool = Field(default=True, description="Group matches by file in results")
    exhaustive: bool = Field(
        default=True,
        description="Search ALL chunks for complete results (true = like real grep, false = faster BM25 pre-filter)",
    )

    def request_body(self) -> Dict[str, Any]:
        body = super().request_body()
        body["include_line_numbers"] = self.include_line_numbers
        body["group_by_file"] = self.group_by_file
        body["exhaustive"] = self.exhaustive
        return body


class WebSearchInput(ToolInput):
    query: str = Field(..., min_length=1, description="Search query")
    num_results: NumResults = Field(
        default=5,
        description="Number of results to return",
        json_schema_extra={"minimum": 1, "maximum": 10},
    )
    category: Optional[WebCategory] = Field(default=None, description="Filter by content category")
    days_back: Optional[int] = Field(default=None, ge=1, description="Only return results from the last N days")
    find_similar_to: Optional[str] = Field(default=None, description="Find pages similar to this URL")

    def request_body(self) -> Dict[str, Any]:
        body = {
            "query": self.query,
            "num_results": self.num_results,
            "category": self.category,
            "days_back": self.days_back,
            "find_similar_to": self.find_similar_to,
        }
        return {k: v for k, v in body.items() if v is not None}


class SourceContentInput(ToolInput):
    source_type: Literal["repository", "documentation"] = Field(..., description="Type of source to retrieve")
    source_identifier: str = Field(
        ...,
        min_length=1,
        description=(
            "Identifier for the source. For repositories: 'owner/repo:path/to/file'. "
            "For documentation: the source URL or path"
        ),
    )
    metadata: Optional[Dict[str, Any]] = Field(
        default=None, description="Optional metadata from search results to help locate the source"
    )

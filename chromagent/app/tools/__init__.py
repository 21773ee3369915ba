"""Tool layer: schema-validated Nia operations exposed to the model."""

from chromagent.app.tools.base import Tool, ToolCall, ToolInput, ToolOutput, ToolRegistry
from chromagent.app.tools.sources import SourceCatalog

__all__ = [
    "SourceCatalog",
    "Tool",
    "ToolCall",
    "ToolInput",
    "ToolOutput",
    "ToolRegistry",
]

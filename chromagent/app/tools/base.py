"""Tool definitions and the registry the chat runtime calls into.

A tool is a named async operation with a pydantic input model. The registry
validates arguments before the handler runs, so no request is built from
invalid input.
"""

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Type

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from chromagent.app.core.logging import get_log_context, get_logger, preview
from chromagent.app.exceptions import ToolValidationError, UnknownToolError

logger = get_logger(__name__)


class ToolInput(BaseModel):
    """Base for tool argument models.

    Fields are exposed to the model in camelCase (``maxMatchesPerFile``);
    snake_case names are accepted too. Unknown keys are ignored.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ToolOutput(BaseModel):
    """Base for normalized tool results, dumped with camelCase keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


Handler = Callable[[Any], Awaitable[Any]]


@dataclass
class ToolCall:
    """One invocation of a named tool by the chat runtime."""
    tool_name: str
    arguments: Dict[str, Any] = field(default_factory=dict)
    call_id: str = field(default_factory=lambda: f"call_{uuid.uuid4().hex[:24]}")


@dataclass
class Tool:
    """A named, schema-validated operation."""
    name: str
    description: str
    input_model: Type[ToolInput]
    handler: Handler
    summarize: Optional[Callable[[Any], str]] = None

    def schema(self) -> Dict[str, Any]:
        """OpenAI-compatible function tool definition."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_model.model_json_schema(by_alias=True),
            },
        }

    def validate(self, arguments: Dict[str, Any]) -> ToolInput:
        try:
            return self.input_model.model_validate(arguments or {})
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}"
                for err in e.errors(include_url=False)
            )
            raise ToolValidationError(
                f"Invalid arguments for {self.name}: {problems}", tool_name=self.name
            ) from e


def to_payload(result: Any) -> Any:
    """Turn a handler result into JSON-ready data."""
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json", by_alias=True, exclude_none=True)
    return result


class ToolRegistry:
    """Closed catalogue of tools available to one agent profile."""

    def __init__(self, tools: Iterable[Tool] = ()):
        self._tools: Dict[str, Tool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    def get(self, name: str) -> Tool:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name, self.names) from None

    def schemas(self) -> List[Dict[str, Any]]:
        return [tool.schema() for tool in self._tools.values()]

    async def execute(self, call: ToolCall, request_id: Optional[str] = None) -> Any:
        """Validate and run one tool call.

        Returns:
            JSON-ready result payload

        Raises:
            UnknownToolError: If the tool is not registered
            ToolValidationError: If the arguments fail validation
            ConfigurationError, UpstreamError: Raised by the handler
        """
        context = get_log_context(request_id=request_id, tool_name=call.tool_name, call_id=call.call_id)
        tool = self.get(call.tool_name)
        args = tool.validate(call.arguments)

        logger.info(
            f"[NIA TOOL] {tool.name} input: {preview(args.model_dump(by_alias=True, exclude_none=True))}",
            extra=context,
        )
        started = time.perf_counter()
        try:
            result = await tool.handler(args)
        except Exception as e:
            logger.error(f"[NIA ERROR] {tool.name}: {e}", extra=context)
            raise

        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        summary = tool.summarize(result) if tool.summarize else "ok"
        logger.info(
            f"[NIA SUCCESS] {tool.name}: {summary}",
            extra={**context, "duration_ms": duration_ms},
        )
        payload = to_payload(result)
        logger.debug(f"Response: {preview(payload)}", extra=context)
        return payload

"""Tool-calling chat loop.

Each step streams one chat completion with the tool set registered. When the
model asks for tools, they run through the registry and their results (or
errors) are appended for the next step. The loop stops when a step ends
without tool calls or after ``max_steps`` steps.
"""

import json
import uuid
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator, Dict, List, Optional

import httpx

from chromagent.app.core.logging import get_logger
from chromagent.app.exceptions import ChromAgentException
from chromagent.app.providers.base import BaseProvider
from chromagent.app.tools.base import ToolCall, ToolRegistry

logger = get_logger(__name__)

Event = Dict[str, Any]


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


@dataclass
class _PendingToolCall:
    id: str = ""
    name: str = ""
    arguments: str = ""


@dataclass
class _StepState:
    """Accumulates one streamed completion."""
    text: List[str] = field(default_factory=list)
    text_id: Optional[str] = None
    reasoning_id: Optional[str] = None
    tool_calls: Dict[int, _PendingToolCall] = field(default_factory=dict)
    finish_reason: Optional[str] = None


class ChatRuntime:
    """Runs the model tool loop and emits UI message stream events."""

    def __init__(
        self,
        provider: BaseProvider,
        registry: ToolRegistry,
        system_prompt: str,
        max_steps: int = 20,
        thinking_budget: int = 10000,
        anthropic_max_tokens: int = 16000,
    ):
        self.provider = provider
        self.registry = registry
        self.system_prompt = system_prompt
        self.max_steps = max_steps
        self.thinking_budget = thinking_budget
        self.anthropic_max_tokens = anthropic_max_tokens

    def build_payload(self, model: str, messages: List[Dict[str, Any]]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
        }
        if len(self.registry):
            payload["tools"] = self.registry.schemas()
        # Extended thinking for Anthropic models
        if model.startswith("anthropic/"):
            payload["reasoning"] = {"enabled": True, "max_tokens": self.thinking_budget}
            payload["max_tokens"] = self.anthropic_max_tokens
        return payload

    async def stream(
        self,
        messages: List[Dict[str, Any]],
        model: str,
        request_id: Optional[str] = None,
    ) -> AsyncGenerator[Event, None]:
        """Run the loop for one chat turn.

        Args:
            messages: Conversation as chat completion messages (no system prompt)
            model: Model id to call
            request_id: Request id for log correlation

        Yields:
            UI message stream events
        """
        history: List[Dict[str, Any]] = [{"role": "system", "content": self.system_prompt}, *messages]
        log_extra = {"request_id": request_id, "model": model}

        yield {"type": "start", "messageId": _new_id("msg")}
        try:
            for step in range(self.max_steps):
                yield {"type": "start-step"}
                state = _StepState()
                async for event in self._stream_step(model, history, state):
                    yield event

                tool_calls = [state.tool_calls[i] for i in sorted(state.tool_calls)]
                assistant: Dict[str, Any] = {"role": "assistant", "content": "".join(state.text) or None}
                if tool_calls:
                    assistant["tool_calls"] = [
                        {
                            "id": tc.id,
                            "type": "function",
                            "function": {"name": tc.name, "arguments": tc.arguments or "{}"},
                        }
                        for tc in tool_calls
                    ]
                history.append(assistant)

                for tc in tool_calls:
                    async for event in self._run_tool(tc, history, request_id):
                        yield event

                yield {"type": "finish-step"}
                if not tool_calls:
                    break
            else:
                logger.info(f"Stopped after {self.max_steps} steps", extra=log_extra)
        except httpx.TimeoutException:
            logger.error("Upstream timeout while streaming", extra=log_extra)
            yield {"type": "error", "errorText": "Request timeout, please retry"}
        except (ChromAgentException, httpx.HTTPError) as e:
            logger.error(f"Error while streaming: {e}", extra=log_extra)
            yield {"type": "error", "errorText": str(e)}
        except Exception as e:
            # Never expose internals to the client
            logger.exception(f"Unexpected stream error: {e}", extra=log_extra)
            yield {"type": "error", "errorText": "Stream interrupted, please retry"}

        yield {"type": "finish"}

    async def _stream_step(
        self,
        model: str,
        history: List[Dict[str, Any]],
        state: _StepState,
    ) -> AsyncGenerator[Event, None]:
        payload = self.build_payload(model, history)
        async for chunk in self.provider.stream_chat(payload):
            choices = chunk.get("choices") or []
            if not choices:
                continue
            choice = choices[0]
            delta = choice.get("delta") or {}

            reasoning = delta.get("reasoning") or delta.get("reasoning_content")
            if reasoning:
                if state.reasoning_id is None:
                    state.reasoning_id = _new_id("reasoning")
                    yield {"type": "reasoning-start", "id": state.reasoning_id}
                yield {"type": "reasoning-delta", "id": state.reasoning_id, "delta": reasoning}

            content = delta.get("content")
            if content:
                if state.text_id is None:
                    state.text_id = _new_id("text")
                    yield {"type": "text-start", "id": state.text_id}
                state.text.append(content)
                yield {"type": "text-delta", "id": state.text_id, "delta": content}

            for fragment in delta.get("tool_calls") or []:
                pending = state.tool_calls.setdefault(fragment.get("index", 0), _PendingToolCall())
                if fragment.get("id"):
                    pending.id = fragment["id"]
                function = fragment.get("function") or {}
                if function.get("name"):
                    pending.name = function["name"]
                if function.get("arguments"):
                    pending.arguments += function["arguments"]

            if choice.get("finish_reason"):
                state.finish_reason = choice["finish_reason"]

        if state.reasoning_id is not None:
            yield {"type": "reasoning-end", "id": state.reasoning_id}
        if state.text_id is not None:
            yield {"type": "text-end", "id": state.text_id}

        for pending in state.tool_calls.values():
            if not pending.id:
                pending.id = ToolCall(pending.name).call_id

    async def _run_tool(
        self,
        pending: _PendingToolCall,
        history: List[Dict[str, Any]],
        request_id: Optional[str],
    ) -> AsyncGenerator[Event, None]:
        try:
            arguments = json.loads(pending.arguments) if pending.arguments.strip() else {}
        except json.JSONDecodeError:
            arguments = None

        yield {
            "type": "tool-input-available",
            "toolCallId": pending.id,
            "toolName": pending.name,
            "input": arguments if arguments is not None else pending.arguments,
        }

        if not isinstance(arguments, dict):
            error_text = f"Invalid JSON arguments for {pending.name}"
        else:
            call = ToolCall(tool_name=pending.name, arguments=arguments, call_id=pending.id)
            try:
                output = await self.registry.execute(call, request_id=request_id)
            except (ChromAgentException, httpx.HTTPError) as e:
                error_text = str(e)
            else:
                history.append({
                    "role": "tool",
                    "tool_call_id": pending.id,
                    "content": json.dumps(output, ensure_ascii=False, default=str),
                })
                yield {"type": "tool-output-available", "toolCallId": pending.id, "output": output}
                return

        history.append({"role": "tool", "tool_call_id": pending.id, "content": f"Error: {error_text}"})
        yield {"type": "tool-output-error", "toolCallId": pending.id, "errorText": error_text}

"""UI message models and the UI message stream encoding.

Browser clients send messages made of typed parts and read back a stream of
JSON events framed as server-sent events, ending with ``data: [DONE]``.
"""

import json
from typing import Any, AsyncGenerator, AsyncIterable, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

UI_STREAM_HEADER = "x-vercel-ai-ui-message-stream"
UI_STREAM_VERSION = "v1"


class UIMessagePart(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    text: Optional[str] = None


class UIMessage(BaseModel):
    """One chat message as sent by the browser."""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    role: Literal["system", "user", "assistant"]
    content: Optional[str] = None
    parts: List[UIMessagePart] = Field(default_factory=list)

    @model_validator(mode="after")
    def require_text(self) -> "UIMessage":
        if self.content is None and not self.parts:
            raise ValueError("message needs either content or parts")
        return self

    @property
    def text(self) -> str:
        """Concatenated text of the message; non-text parts are ignored."""
        if self.parts:
            return "".join(p.text or "" for p in self.parts if p.type == "text")
        return self.content or ""


class ChatRequest(BaseModel):
    """Request body of POST /api/chat."""
    messages: List[UIMessage] = Field(..., min_length=1)
    model: Optional[str] = None


def to_model_messages(messages: List[UIMessage]) -> List[Dict[str, Any]]:
    """Convert UI messages to chat completion messages, dropping empty ones."""
    converted = []
    for message in messages:
        text = message.text
        if text.strip():
            converted.append({"role": message.role, "content": text})
    return converted


def encode_event(event: Dict[str, Any]) -> str:
    return f"data: {json.dumps(event, ensure_ascii=False, default=str)}\n\n"


async def encode_stream(events: AsyncIterable[Dict[str, Any]]) -> AsyncGenerator[str, None]:
    """Frame events as SSE lines and terminate the stream."""
    async for event in events:
        yield encode_event(event)
    yield "data: [DONE]\n\n"

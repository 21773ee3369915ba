"""Chat services: the tool loop and the UI message stream."""

from chromagent.app.services.chat_runtime import ChatRuntime
from chromagent.app.services.ui_messages import ChatRequest, UIMessage, encode_stream, to_model_messages

__all__ = ["ChatRequest", "ChatRuntime", "UIMessage", "encode_stream", "to_model_messages"]

"""Chat API endpoints."""

import json
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from chromagent.app.core.config import Settings
from chromagent.app.core.logging import get_logger
from chromagent.app.middleware.request_id import get_request_id
from chromagent.app.services.chat_runtime import ChatRuntime
from chromagent.app.services.ui_messages import (
    UI_STREAM_HEADER,
    UI_STREAM_VERSION,
    ChatRequest,
    encode_stream,
    to_model_messages,
)

router = APIRouter()
logger = get_logger(__name__)


def get_settings_dependency(request: Request) -> Settings:
    return request.app.state.settings


def get_chat_runtime(request: Request) -> ChatRuntime:
    """Chat runtime built in the application lifespan."""
    runtime = getattr(request.app.state, "chat_runtime", None)
    if runtime is None:
        raise HTTPException(status_code=503, detail="Chat runtime not initialized")
    return runtime


@router.post("/api/chat", response_model=None)
async def chat(
    request: Request,
    settings: Settings = Depends(get_settings_dependency),
    runtime: ChatRuntime = Depends(get_chat_runtime),
) -> StreamingResponse:
    """Stream one assistant turn as a UI message stream.

    The turn may span several model steps when the model calls tools.

    Raises:
        HTTPException: 400 for malformed JSON, 422 for invalid messages or
            an unsupported model
    """
    request_id = get_request_id(request)

    try:
        body = await request.json()
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Invalid JSON in request body")

    try:
        chat_request = ChatRequest.model_validate(body)
    except ValidationError as validation_error:
        raise HTTPException(
            status_code=422,
            detail={
                "error": "validation_error",
                "message": str(validation_error),
            }
        )

    model = chat_request.model or settings.default_model
    if model not in settings.allowed_models:
        raise HTTPException(
            status_code=422,
            detail={
                "error": "unsupported_model",
                "message": f"Model '{model}' is not supported. Available: {', '.join(settings.allowed_models)}",
            }
        )

    messages = to_model_messages(chat_request.messages)
    if not messages:
        raise HTTPException(
            status_code=422,
            detail={"error": "validation_error", "message": "messages contain no text"},
        )

    logger.info(
        "Chat request accepted",
        extra={"request_id": request_id, "model": model, "message_count": len(messages)},
    )

    return StreamingResponse(
        encode_stream(runtime.stream(messages, model, request_id=request_id)),
        media_type="text/event-stream",
        headers={
            UI_STREAM_HEADER: UI_STREAM_VERSION,
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/api/tools")
async def list_tools(runtime: ChatRuntime = Depends(get_chat_runtime)) -> dict[str, Any]:
    """Tool definitions of the active agent profile."""
    return {"tools": runtime.registry.schemas()}

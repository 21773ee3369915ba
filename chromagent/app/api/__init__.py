"""API routers."""

from chromagent.app.api.chat import router as chat_router

__all__ = ["chat_router"]

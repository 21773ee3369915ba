"""Model providers for the chat runtime."""

from chromagent.app.providers.base import BaseProvider
from chromagent.app.providers.gateway import GatewayProvider

__all__ = ["BaseProvider", "GatewayProvider"]

"""OpenAI-compatible AI gateway provider.

Streams chat completions with tool calling from any endpoint that speaks the
OpenAI chat completions protocol (Vercel AI Gateway, OpenRouter, ...).
"""

import json
from typing import Any, AsyncGenerator, Dict

from chromagent.app.core.logging import get_logger
from chromagent.app.exceptions import ConfigurationError, ModelProviderError
from chromagent.app.providers.base import BaseProvider

logger = get_logger(__name__)

SSE_DATA_PREFIX = "data:"
SSE_DONE = "[DONE]"


class GatewayProvider(BaseProvider):
    """Chat completions over the AI gateway with shared connection pooling."""

    async def stream_chat(self, payload: Dict[str, Any]) -> AsyncGenerator[Dict[str, Any], None]:
        """Stream one chat completion.

        Raises:
            ConfigurationError: If no gateway key is configured
            ModelProviderError: If the gateway answers with a non-2xx status
        """
        if not self.api_key:
            raise ConfigurationError("AI_GATEWAY_API_KEY environment variable is not set")

        url = self.endpoint_url("/chat/completions")
        payload = {**payload, "stream": True}

        async with self.client() as client:
            async with client.stream("POST", url, headers=self.headers, json=payload) as resp:
                if not resp.is_success:
                    body = (await resp.aread()).decode("utf-8", errors="replace")
                    raise ModelProviderError(resp.status_code, body)

                async for line in resp.aiter_lines():
                    line = line.strip()
                    if not line.startswith(SSE_DATA_PREFIX):
                        continue
                    data = line[len(SSE_DATA_PREFIX):].strip()
                    if data == SSE_DONE:
                        return
                    try:
                        yield json.loads(data)
                    except json.JSONDecodeError:
                        logger.warning(f"Skipping malformed stream chunk: {data[:200]}")

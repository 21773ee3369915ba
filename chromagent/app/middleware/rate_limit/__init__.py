"""Rate limiting middleware for the chat endpoint.

Requests under the configured path prefix are admitted through a
fixed-window limiter keyed by client IP.
"""

from typing import Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from chromagent.app.core.logging import get_log_context, get_logger

# Re-export models and limiter
from chromagent.app.middleware.rate_limit.models import RateLimitEntry, RateLimitResult
from chromagent.app.middleware.rate_limit.limiter import FixedWindowRateLimiter

logger = get_logger(__name__)

UNKNOWN_CLIENT = "unknown"

__all__ = [
    "RateLimitEntry",
    "RateLimitResult",
    "FixedWindowRateLimiter",
    "RateLimitMiddleware",
    "get_client_key",
    "rate_limit_headers",
]


def get_client_key(request: Request) -> str:
    """Identify the client for rate limiting.

    Uses the first X-Forwarded-For hop, then X-Real-IP, then the socket
    peer address, and finally the literal "unknown".
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        client_ip = forwarded.split(",")[0].strip()
        if client_ip:
            return client_ip

    real_ip = request.headers.get("X-Real-IP", "").strip()
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_time),
    }


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware to enforce per-IP rate limits on chat requests.

    Rejected requests get HTTP 429 with Retry-After and X-RateLimit-*
    headers. Admitted responses carry the X-RateLimit-* headers too.
    """

    def __init__(
        self,
        app,
        limiter: Optional[FixedWindowRateLimiter] = None,
        path_prefix: str = "/api/chat",
    ):
        super().__init__(app)
        self.limiter = limiter if limiter is not None else FixedWindowRateLimiter()
        self.path_prefix = path_prefix

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        """Process request with rate limiting."""
        if request.method == "OPTIONS" or not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        key = get_client_key(request)
        result = self.limiter.check(key)

        if not result.allowed:
            logger.warning(
                "Rate limit exceeded",
                extra=get_log_context(
                    request_id=getattr(request.state, "request_id", None),
                    client_key=key,
                    path=request.url.path,
                ),
            )
            headers = rate_limit_headers(result)
            headers["Retry-After"] = str(result.retry_after or int(self.limiter.window_seconds))
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": (
                        "Too many requests. Please wait and try again after "
                        f"{result.reset_at_iso}."
                    ),
                    "retry_after": result.retry_after,
                    "reset_at": result.reset_at_iso,
                },
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(rate_limit_headers(result))
        return response

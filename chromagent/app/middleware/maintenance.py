"""Maintenance mode middleware.

While enabled, every request except the health check is answered with
HTTP 503 and a Retry-After header.
"""

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint


class MaintenanceMiddleware(BaseHTTPMiddleware):

    def __init__(
        self,
        app,
        enabled: bool = False,
        retry_after_seconds: int = 300,
        exempt_paths: tuple[str, ...] = ("/health",),
    ):
        super().__init__(app)
        self.enabled = enabled
        self.retry_after_seconds = retry_after_seconds
        self.exempt_paths = exempt_paths

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        if not self.enabled or request.url.path in self.exempt_paths:
            return await call_next(request)

        return JSONResponse(
            status_code=503,
            content={
                "error": "maintenance",
                "message": "The service is down for maintenance. Please try again later.",
            },
            headers={"Retry-After": str(self.retry_after_seconds)},
        )

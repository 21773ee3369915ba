from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chromagent.app.agents.profiles import get_profile
from chromagent.app.api.chat import router as chat_router
from chromagent.app.core.config import Settings, get_settings
from chromagent.app.core.http_client import init_http_client
from chromagent.app.core.logging import get_logger, setup_logging
from chromagent.app.exceptions import ChromAgentException
from chromagent.app.middleware.maintenance import MaintenanceMiddleware
from chromagent.app.middleware.rate_limit import FixedWindowRateLimiter, RateLimitMiddleware
from chromagent.app.middleware.request_id import RequestIdMiddleware, get_request_id
from chromagent.app.nia.client import NiaClient
from chromagent.app.providers.gateway import GatewayProvider
from chromagent.app.services.chat_runtime import ChatRuntime
from chromagent.app.tools.sources import SourceCatalog


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings; read from the environment when omitted

    Returns:
        Configured FastAPI application instance

    Raises:
        ConfigurationError: If AGENT_PROFILE names an unknown profile
    """
    settings = settings or get_settings()
    setup_logging(settings)
    logger = get_logger(__name__)

    profile = get_profile(settings.agent_profile)
    catalog = SourceCatalog.from_settings(settings)
    limiter = FixedWindowRateLimiter(
        limit=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
        sweep_interval_seconds=settings.rate_limit_sweep_interval_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan context manager.

        Opens the shared HTTP connection pool and builds the Nia client,
        tool registry and chat runtime on startup.
        """
        async with init_http_client(settings) as http_client:
            nia_client = NiaClient(
                base_url=settings.nia_api_base,
                api_key=settings.nia_api_key,
                http_client=http_client,
                query_path=settings.nia_query_path,
                web_search_path=settings.nia_web_search_path,
            )
            provider = GatewayProvider(
                base_url=settings.ai_gateway_base_url,
                api_key=settings.ai_gateway_api_key,
                http_client=http_client,
            )
            registry = profile.registry(nia_client, catalog)
            app.state.nia_client = nia_client
            app.state.chat_runtime = ChatRuntime(
                provider=provider,
                registry=registry,
                system_prompt=profile.system_prompt,
                max_steps=settings.max_steps,
                thinking_budget=settings.anthropic_thinking_budget,
                anthropic_max_tokens=settings.anthropic_max_output_tokens,
            )

            logger.info(
                "Application startup complete",
                extra={
                    "profile": profile.name,
                    "tools": registry.names,
                    "maintenance_mode": settings.maintenance_mode,
                }
            )
            yield

        app.state.chat_runtime = None
        logger.info("Application shutdown complete")

    app = FastAPI(
        title=profile.title,
        description="Chat gateway grounding a hosted model in Nia search tools",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.profile = profile
    app.state.source_catalog = catalog
    app.state.rate_limiter = limiter
    app.state.chat_runtime = None

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(
        RateLimitMiddleware,
        limiter=limiter,
        path_prefix=settings.rate_limit_path_prefix,
    )
    app.add_middleware(
        MaintenanceMiddleware,
        enabled=settings.maintenance_mode,
        retry_after_seconds=settings.maintenance_retry_after_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    # CORS middleware (outermost - handles preflight requests first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_origins != ["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
        max_age=600,
    )

    app.include_router(chat_router)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        """Configuration health; no upstream calls are made."""
        components: dict[str, Any] = {
            "nia": {"configured": bool(settings.nia_api_key), "base_url": settings.nia_api_base},
            "model_gateway": {"configured": bool(settings.ai_gateway_api_key)},
            "sources": {
                "docs": len(catalog.docs),
                "repos": len(catalog.repos),
                "archives": len(catalog.archives),
                "biographies": len(catalog.biographies),
                "single_source": catalog.single_source is not None,
            },
            "rate_limit": {
                "limit": limiter.limit,
                "window_seconds": limiter.window_seconds,
                "tracked_clients": len(limiter),
            },
        }
        status = "ok"
        if not settings.nia_api_key or not settings.ai_gateway_api_key:
            status = "degraded"
        if settings.maintenance_mode:
            status = "maintenance"
        return {"status": status, "profile": profile.name, "components": components}

    @app.exception_handler(ChromAgentException)
    async def chromagent_exception_handler(request: Request, exc: ChromAgentException) -> JSONResponse:
        """Map service exceptions to their HTTP status."""
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled exceptions.

        Never returns a traceback to the client; debug mode adds the
        exception message and type.
        """
        request_id = get_request_id(request)
        logger.exception(
            f"Unhandled exception [request_id={request_id}]",
            extra={
                "request_id": request_id,
                "exception_type": type(exc).__name__,
            }
        )

        content = {
            "error": "internal_error",
            "message": "Internal server error",
            "request_id": request_id,
        }
        if settings.debug:
            content["message"] = str(exc)
            content["exception_type"] = type(exc).__name__
        return JSONResponse(status_code=500, content=content)

    return app


# Create the application instance
app = create_app()

"""FastAPI application factory and configuration.

This module provides the application factory function for creating
and configuring the FastAPI application with all middleware, routes,
and lifecycle handlers.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from notionview.core.config import Settings, get_settings
from notionview.core.logging import (
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
    new_correlation_id,
)
from notionview.domain.exceptions import NotionViewError
from notionview.infrastructure.api.errors import error_payload
from notionview.infrastructure.api.responses import NotionJSONResponse
from notionview.infrastructure.cache.edge_cache import EdgeCache
from notionview.infrastructure.notion.client import NotionClient

logger = get_logger(__name__)

ROUTE_LIST = [
    "/v1/page/:pageId",
    "/v1/table/:pageId",
    "/v1/collection/:pageId",
    "/v1/user/:userId",
    "/v1/search?ancestorId=[id]&query=[text]",
    "/v1/block/:blockId",
    "/v1/asset?url=[filename]&blockId=[id]",
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Opens the shared upstream HTTP connection pool on startup and closes it,
    after pending cache revalidations finish, on shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control is yielded to the application during its lifetime.
    """
    settings: Settings = app.state.settings

    # Configure logging
    configure_logging(settings)

    logger.info(
        "Starting notionview",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        notion_api_url=settings.notion_api_url,
    )

    http_client = httpx.AsyncClient(timeout=settings.notion_timeout_seconds)
    app.state.notion_client = NotionClient.from_settings(settings, http_client)

    yield

    # Shutdown
    logger.info("Shutting down notionview")

    await app.state.edge_cache.drain()
    await http_client.aclose()
    logger.info("Upstream HTTP client closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use. Loaded from the environment when omitted.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Typed JSON views over Notion pages and collections",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.edge_cache = EdgeCache(
        fresh_seconds=settings.cache_fresh_seconds,
        max_entries=settings.cache_max_entries,
        enabled=settings.cache_enabled,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        expose_headers=["X-Cache", "X-Correlation-ID"],
    )

    # Register health check endpoint
    register_health_check(app)

    # Register API routes
    register_routes(app, settings)

    # Register exception handlers
    register_exception_handlers(app)

    # Register middleware
    register_middleware(app)

    return app


def register_health_check(app: FastAPI) -> None:
    """Register health check endpoints.

    Args:
        app: FastAPI application instance.
    """

    @app.get("/health", tags=["health"])
    async def health_check():
        """Basic health check endpoint.

        Returns 200 if the service is running. Does not contact Notion.
        """
        return {
            "status": "healthy",
            "service": "notionview",
            "version": app.state.settings.app_version,
            "cached_responses": app.state.edge_cache.size(),
        }

    @app.get("/live", tags=["health"])
    async def liveness_check():
        """Liveness check endpoint."""
        return {
            "status": "alive",
            "service": "notionview",
            "version": app.state.settings.app_version,
        }


def register_routes(app: FastAPI, settings: Settings) -> None:
    """Register API routes.

    Args:
        app: FastAPI application instance.
        settings: Application settings.
    """
    from notionview.infrastructure.api.routes import (
        asset_router,
        block_router,
        collection_router,
        page_router,
        search_router,
        table_router,
        user_router,
    )

    prefix = settings.api_prefix

    app.include_router(page_router, prefix=f"{prefix}/page", tags=["pages"])
    app.include_router(table_router, prefix=f"{prefix}/table", tags=["tables"])
    app.include_router(collection_router, prefix=f"{prefix}/collection", tags=["collections"])
    app.include_router(user_router, prefix=f"{prefix}/user", tags=["users"])
    app.include_router(block_router, prefix=f"{prefix}/block", tags=["blocks"])
    app.include_router(asset_router, prefix=f"{prefix}/asset", tags=["assets"])
    app.include_router(search_router, prefix=f"{prefix}/search", tags=["search"])

    # Must be last so it only catches unmatched paths
    @app.get("/{path:path}", include_in_schema=False)
    async def route_not_found(path: str):
        return NotionJSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "Route not found!", "routes": ROUTE_LIST},
            headers={"Cache-Control": "no-store"},
        )


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    All error bodies use the ``{"error": ...}`` shape.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(NotionViewError)
    async def notionview_exception_handler(request: Request, exc: NotionViewError):
        """Map domain errors that escaped the routes to their status codes."""
        payload = error_payload(exc)
        logger.info(
            "Request failed",
            path=str(request.url.path),
            status_code=payload.status_code,
            error=str(exc),
        )
        return NotionJSONResponse(
            status_code=payload.status_code,
            content=payload.body,
            headers={"Cache-Control": "no-store"},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers={**(exc.headers or {}), "Cache-Control": "no-store"},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Invalid request parameters",
                "message": jsonable_encoder(exc.errors()),
            },
            headers={"Cache-Control": "no-store"},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            path=str(request.url),
            method=request.method,
            error=str(exc),
            exc_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal server error",
                "detail": str(exc) if app.state.settings.debug else "An unexpected error occurred",
            },
        )


def register_middleware(app: FastAPI) -> None:
    """Register custom middleware.

    Args:
        app: FastAPI application instance.
    """

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Middleware to log all requests and add correlation ID."""
        # Generate or extract correlation ID
        correlation_id = request.headers.get("X-Correlation-ID") or new_correlation_id()
        bind_correlation_id(correlation_id)

        logger.info(
            "Request started",
            method=request.method,
            path=str(request.url.path),
        )

        try:
            response = await call_next(request)
            logger.info(
                "Request completed",
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
                cache=response.headers.get("X-Cache"),
            )
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            # Clear context to prevent leakage
            clear_context()


# Create the application instance
app = create_app()

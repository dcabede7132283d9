"""FastAPI application factory for StoryFeed.

This module creates and configures the FastAPI application with:
- Explicit wiring of the cache, upstream client and story service
- Lifespan management for startup/shutdown events
- Middleware configuration (CORS, request ID, logging)
- Exception handlers
- API routers
"""

import time
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storyfeed.config import Settings, get_settings
from storyfeed.core.exceptions import StoryFeedError
from storyfeed.core.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)
from storyfeed.dependencies import CacheDep, SettingsDep
from storyfeed.schemas.common import HealthCheckResponse
from storyfeed.services.cache import CacheService
from storyfeed.services.hackernews import HackerNewsClient
from storyfeed.services.stories import StoryService

# Initialize logger for this module
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan events.

    Configures logging on startup and closes the pooled upstream HTTP
    client on shutdown.

    Args:
        app: The FastAPI application instance

    Yields:
        None: Control back to the application
    """
    settings: Settings = app.state.settings

    # ========================================
    # Startup
    # ========================================
    # Configure logging first
    configure_logging(settings)

    # Re-get logger after configuration
    startup_logger = get_logger(__name__)

    # Log startup
    startup_logger.info(
        "Application starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.app_env.value,
        upstream=settings.hackernews_base_url,
    )

    yield

    # ========================================
    # Shutdown
    # ========================================
    # Close pooled upstream connections
    await app.state.hackernews_client.close()

    startup_logger.info("Application shutting down", app_name=settings.app_name)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    This is the application factory function that creates a fully configured
    FastAPI instance with all middleware, routes, and exception handlers.

    Args:
        settings: Optional settings override for testing

    Returns:
        FastAPI: Configured application instance
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Cached, paginated and searchable view of the newest "
            "Hacker News stories."
        ),
        version=settings.app_version,
        lifespan=lifespan,
    )

    # ========================================
    # Services
    # ========================================
    configure_services(app, settings)

    # ========================================
    # Middleware
    # ========================================
    configure_middleware(app, settings)

    # ========================================
    # Exception Handlers
    # ========================================
    configure_exception_handlers(app)

    # ========================================
    # Routes
    # ========================================
    configure_routes(app)

    return app


def configure_services(app: FastAPI, settings: Settings) -> None:
    """Wire the story pipeline and store it on the application state.

    One cache instance is shared by every request served by this app.

    Args:
        app: The FastAPI application instance
        settings: Application settings
    """
    cache = CacheService()
    client = HackerNewsClient(settings)

    app.state.settings = settings
    app.state.cache = cache
    app.state.hackernews_client = client
    app.state.story_service = StoryService(client, cache)


def configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure application middleware.

    Args:
        app: The FastAPI application instance
        settings: Application settings
    """
    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_development else [],
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    # Request logging middleware
    @app.middleware("http")
    async def logging_middleware(request: Request, call_next: Any) -> Any:
        """Log requests and responses with correlation ID."""
        # Generate or extract request ID
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id

        # Bind correlation ID for all logs in this request context
        bind_request_context(request_id, method=request.method, path=request.url.path)

        request_logger = get_logger("storyfeed.request")
        start_time = time.perf_counter()

        # Log request start
        request_logger.info(
            "Request started",
            method=request.method,
            path=request.url.path,
            query=str(request.query_params) if request.query_params else None,
        )

        try:
            response = await call_next(request)

            # Calculate duration
            duration_ms = (time.perf_counter() - start_time) * 1000
            # Log request completion
            request_logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

            # Add request ID to response headers
            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            request_logger.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round(duration_ms, 2),
                error=str(exc),
            )
            raise

        finally:
            # Clear request context
            clear_request_context()


def configure_exception_handlers(app: FastAPI) -> None:
    """Configure global exception handlers.

    Args:
        app: The FastAPI application instance
    """
    exception_logger = get_logger("storyfeed.exceptions")

    @app.exception_handler(StoryFeedError)
    async def storyfeed_exception_handler(
        request: Request, exc: StoryFeedError
    ) -> JSONResponse:
        """Handle StoryFeed exceptions with structured error response."""
        request_id = getattr(request.state, "request_id", None)

        # Log at appropriate level based on status code
        if exc.status_code >= 500:
            exception_logger.error(
                "Application error",
                error_code=exc.code,
                error_message=exc.message,
                status_code=exc.status_code,
                path=request.url.path,
            )
        else:
            exception_logger.warning(
                "Client error",
                error_code=exc.code,
                error_message=exc.message,
                status_code=exc.status_code,
                path=request.url.path,
            )

        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(request_id=request_id),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions with a consistent error response."""
        request_id = getattr(request.state, "request_id", None)

        # Log with traceback
        exception_logger.exception(
            "Unhandled exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_SERVER_ERROR",
                    "message": "An unexpected error occurred",
                    "request_id": request_id,
                }
            },
        )


def configure_routes(app: FastAPI) -> None:
    """Configure application routes.

    Args:
        app: The FastAPI application instance
    """

    # Health check endpoints
    @app.get(
        "/health/live",
        tags=["Health"],
        summary="Liveness probe",
        description="Returns OK if the service is running",
    )
    async def liveness() -> dict[str, str]:
        """Liveness probe for container orchestration."""
        return {"status": "ok"}

    @app.get(
        "/health/ready",
        tags=["Health"],
        summary="Readiness probe",
        description="Returns OK if the story pipeline is wired",
        response_model=HealthCheckResponse,
    )
    async def readiness(cache: CacheDep) -> HealthCheckResponse:
        """Readiness probe reporting the cache state.

        The upstream is not probed; an outage surfaces as 503 on the
        story endpoints instead.
        """
        return HealthCheckResponse(
            status="ok",
            checks={"cache": "ok"},
            cached_entries=len(cache),
        )

    # Root endpoint
    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        description="Returns API information",
    )
    async def root(settings: SettingsDep) -> dict[str, str]:
        """API root endpoint with service information."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
            "health": "/health/live",
        }

    # Include API v1 router
    from storyfeed.api.v1.router import router as v1_router

    app.include_router(v1_router, prefix="/api/v1")


# Create the application instance
app = create_app()


def cli() -> None:
    """CLI entry point for running the application."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "storyfeed.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.value.lower(),
    )


if __name__ == "__main__":
    cli()

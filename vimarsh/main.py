"""
FastAPI Application Entry Point.

Code Vimarsh community API: events, registrations, member profiles and auth.
"""

import logging
import sys
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from vimarsh.core.config import Settings
from vimarsh.core.container import Container, get_container, get_settings_dep
from vimarsh.core.errors import AppError, ServerError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    app_name: str
    app_version: str
    timestamp: str
    debug: bool
    database_provider: str


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events:
    - Startup: configure logging, open the store, create the HTTP client
    - Shutdown: close the store, identity provider and HTTP client
    """
    container: Container = app.state.container

    logging.basicConfig(
        level=container.settings.log_level.upper(),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Startup
    await container.startup()
    logger.info(f"{container.settings.app_name} v{container.settings.app_version} started")

    yield

    # Shutdown
    await container.shutdown()


def create_app(container: Container | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        container: Optional container override (tests inject in-memory stores
            and fake providers here). Defaults to the global container.

    Returns:
        Configured FastAPI application instance.
    """
    container = container or get_container()
    settings = container.settings

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Code Vimarsh community backend: event catalog and registration, "
            "member profiles, local and Supabase authentication, admin tools."
        ),
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.container = container

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins(),
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_exception_handlers(app, settings)
    register_routes(app)

    return app


def register_middleware(app: FastAPI) -> None:
    """Per-request access logging."""

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)"
        )
        return response


def _validation_errors(exc: RequestValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors[".".join(loc) or "body"] = error.get("msg", "Invalid value")
    return errors


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """
    Render every failure into the ``{"success": false, ...}`` envelope.

    Args:
        app: FastAPI application instance.
        settings: Settings; ``debug`` controls whether internal detail is exposed.
    """

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        payload = exc.to_payload()
        if isinstance(exc, ServerError):
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
            if settings.debug and exc.detail:
                payload["error"] = exc.detail
        return JSONResponse(status_code=exc.status_code, content=payload)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "message": "Validation failed",
                "errors": _validation_errors(exc),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        payload: dict[str, Any] = {"success": False, "message": "Internal server error"}
        if settings.debug:
            payload["error"] = str(exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)


def register_routes(app: FastAPI) -> None:
    """
    Register all application routes.

    Args:
        app: FastAPI application instance.
    """
    # Import and register API v1 router
    from vimarsh.api.v1 import api_router

    app.include_router(api_router, prefix="/api")

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["Health"],
        summary="Health Check",
        description="Check if the service is running and return configuration metadata.",
    )
    async def health_check(
        settings: Settings = Depends(get_settings_dep),
    ) -> HealthResponse:
        """
        Health check endpoint for readiness checks.

        Returns service status and configuration metadata.
        """
        return HealthResponse(
            status="healthy",
            app_name=settings.app_name,
            app_version=settings.app_version,
            timestamp=datetime.now(timezone.utc).isoformat(),
            debug=settings.debug,
            database_provider=settings.database.provider.value,
        )

    @app.get("/", tags=["Root"], summary="Root")
    async def root() -> dict[str, str]:
        """Service banner with a link to the health endpoint."""
        return {"service": "Code Vimarsh API", "health": "/health"}


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "vimarsh.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )

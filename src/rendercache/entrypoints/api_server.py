# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""FastAPI application factory.

Serves registered components over HTTP and exposes cache management,
health and Prometheus metrics endpoints.
"""

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest

from rendercache import __version__
from rendercache.adapters.config.logging import configure_logging, get_logger
from rendercache.adapters.config.settings import Settings, get_settings
from rendercache.adapters.inbound.admin_api import router as admin_router
from rendercache.adapters.inbound.component_api import router as component_router
from rendercache.adapters.inbound.metrics import PrometheusCacheObserver, registry
from rendercache.application.registry import ComponentRegistry
from rendercache.domain.errors import (
    ComponentNotFoundError,
    RenderCacheError,
)
from rendercache.domain.services import KeyDeriver


class AppState:
    """Application state container for dependency injection."""

    def __init__(self, registry: ComponentRegistry, settings: Settings) -> None:
        self.registry = registry
        self.settings = settings


def build_registry(settings: Settings) -> ComponentRegistry:
    """Empty registry configured from settings, reporting to Prometheus."""
    return ComponentRegistry(
        default_capacity=settings.cache.capacity,
        key_deriver=KeyDeriver(max_depth=settings.cache.max_key_depth),
        observer=PrometheusCacheObserver(),
    )


def _register_health_endpoints(app: FastAPI) -> None:
    @app.get("/health")
    async def health():
        """Liveness check with the number of registered components."""
        return {"status": "ok", "components": len(app.state.rendercache.registry)}


def _register_metrics_endpoint(app: FastAPI) -> None:
    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint."""
        return Response(
            content=generate_latest(registry),
            media_type="text/plain; version=0.0.4",
        )


def _get_error_details(exc: RenderCacheError) -> tuple[int, str]:
    """HTTP status code and error type for domain errors."""
    if isinstance(exc, ComponentNotFoundError):
        return status.HTTP_404_NOT_FOUND, "not_found_error"
    return status.HTTP_400_BAD_REQUEST, "invalid_request_error"


def _register_error_handlers(app: FastAPI) -> None:
    logger = get_logger(__name__)

    @app.exception_handler(RenderCacheError)
    async def domain_error_handler(request: Request, exc: RenderCacheError):
        """Handle domain errors with appropriate status codes."""
        status_code, error_type = _get_error_details(exc)
        logger.warning(
            "domain_error",
            error_type=exc.__class__.__name__,
            http_status=status_code,
            message=str(exc),
        )
        return JSONResponse(
            status_code=status_code,
            content={"error": {"type": error_type, "message": str(exc)}},
        )

    @app.exception_handler(Exception)
    async def general_error_handler(request: Request, exc: Exception):
        """Render failures and other unexpected errors."""
        logger.error(
            "unexpected_error",
            path=request.url.path,
            error_type=type(exc).__name__,
            message=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": {"type": "api_error", "message": "An internal error occurred"}},
        )


def create_app(
    component_registry: ComponentRegistry | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        component_registry: Components to serve. A new empty registry is
            built from settings when omitted.
        settings: Configuration; defaults to the process-wide settings.
    """
    settings = settings or get_settings()
    configure_logging(log_level=settings.server.log_level, json_output=settings.server.json_logs)

    logger = get_logger(__name__)
    logger.info("creating_fastapi_app", version=__version__)

    app = FastAPI(
        title="rendercache",
        description="Render components with memoized output",
        version=__version__,
    )
    app.state.rendercache = AppState(
        registry=component_registry if component_registry is not None else build_registry(settings),
        settings=settings,
    )

    _register_health_endpoints(app)
    _register_metrics_endpoint(app)
    _register_error_handlers(app)
    app.include_router(component_router)
    app.include_router(admin_router)

    logger.info(
        "fastapi_app_created",
        components=app.state.rendercache.registry.names(),
        log_level=settings.server.log_level,
    )
    return app

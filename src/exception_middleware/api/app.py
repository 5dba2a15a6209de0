"""
FastAPI application factory and configuration.

This module creates and configures the FastAPI application with:
- Exception middleware
- Structured logging
- Health check endpoints
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from exception_middleware.api.middleware import ExceptionMiddleware
from exception_middleware.core.config import Settings, get_settings
from exception_middleware.core.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events for the FastAPI application.
    """
    settings = app.state.settings
    logger.info("Starting application", app=settings.APP_NAME, environment=settings.ENVIRONMENT)

    yield

    logger.info("Shutting down application", app=settings.APP_NAME)


def add_exception_middleware(app: FastAPI, settings: Settings | None = None) -> None:
    """
    Register the exception middleware on an existing application.

    No ``@app.exception_handler(Exception)`` may be registered alongside it:
    such a handler runs in Starlette's outermost error middleware and would
    never let the exception reach this one.

    Args:
        app: FastAPI application instance
        settings: Settings passed to the middleware
    """
    app.add_middleware(ExceptionMiddleware, settings=settings or get_settings())


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of the cached environment settings

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        openapi_url="/api/openapi.json" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    add_exception_middleware(app, settings)

    register_routes(app)

    return app


def register_routes(app: FastAPI) -> None:
    """
    Register health check routes.

    Args:
        app: FastAPI application instance
    """

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict:
        """Basic health check endpoint."""
        return {
            "status": "healthy",
            "service": app.state.settings.APP_NAME,
            "version": app.state.settings.APP_VERSION,
        }

    @app.get("/health/live", tags=["Health"])
    async def liveness_check() -> dict:
        """Liveness check endpoint."""
        return {"status": "alive"}

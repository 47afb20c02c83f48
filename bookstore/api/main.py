"""
Bookstore API

FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from loguru import logger

from .. import __version__
from ..config import Settings, get_settings
from ..storage import Storage
from .dependencies import ServiceContainer
from .middleware import (
    LoggingConfig,
    get_cors_config,
    setup_cors,
    setup_exception_handlers,
    setup_logging,
)
from .routes import auth, books, users
from .schemas import HealthResponse

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

API_PREFIX = "/api"


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Storage is built in ``create_app``; this only reports startup and
    releases the backend on shutdown.
    """
    settings: Settings = app.state.settings
    services: ServiceContainer = app.state.services
    logger.info(
        f"Starting Bookstore in {settings.environment} mode "
        f"(storage: {services.storage.name})"
    )
    try:
        yield
    finally:
        logger.info("Shutting down Bookstore...")
        services.close()
        logger.info("Shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app(settings: Optional[Settings] = None, storage: Optional[Storage] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.
        storage: Storage backend. If None, built from ``settings``.

    Returns:
        Configured FastAPI application.

    Raises:
        ConfigurationError: If required settings (the token secret) are
            missing.
    """
    if settings is None:
        settings = get_settings()
    settings.validate()

    app = FastAPI(
        title="Bookstore",
        description="Bookstore catalog, accounts and profiles.",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.services = ServiceContainer(settings, storage)
    # Build the backend now so configuration errors surface at startup
    _ = app.state.services.storage

    # ==========================================================================
    # Middleware (order matters - last added = outermost)
    # ==========================================================================

    setup_cors(app, config=get_cors_config(settings.environment))

    setup_logging(
        app,
        config=LoggingConfig(
            enabled=True,
            log_request_body=settings.debug,
        ),
        structured=settings.environment != "development",
    )

    setup_exception_handlers(app, api_prefix=API_PREFIX)

    # ==========================================================================
    # Routers
    # ==========================================================================

    app.include_router(auth.router, prefix=API_PREFIX)
    app.include_router(books.router, prefix=API_PREFIX)
    app.include_router(users.router, prefix=API_PREFIX)

    # ==========================================================================
    # Root Routes
    # ==========================================================================

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Bookstore",
            "version": __version__,
            "status": "running",
            "docs": "/docs" if settings.debug else None,
        }

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    def health_check(request: Request) -> HealthResponse:
        """Health check endpoint."""
        services: ServiceContainer = request.app.state.services

        components = {}
        overall_healthy = True

        try:
            services.storage.list_books()
            components["storage"] = f"healthy ({services.storage.name})"
        except Exception as e:
            logger.error(f"Storage health check failed: {e}")
            components["storage"] = "unhealthy"
            overall_healthy = False

        return HealthResponse(
            status="healthy" if overall_healthy else "degraded",
            version=__version__,
            components=components,
        )

    return app


# =============================================================================
# CLI Entry Point
# =============================================================================

def main():
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "bookstore.api.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=5000,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()

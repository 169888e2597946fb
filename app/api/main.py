"""
FastAPI Application Factory

Creates and configures FastAPI application
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.assignment_store.factory import get_assignment_store
from app.core.config import settings
from app.core.logging import configure_logging, get_logger
from app.core.db import close_db, init_db
from app.services.department_layout_service import LayoutEngineRegistry

# Import routers
from app.routers import department_layout
from app.api.error_handlers import register_exception_handlers
from app.api.response_middleware import SuccessEnvelopeMiddleware

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan events

    Startup:
        - Configure logging
        - Create tables for the SQL store (development only, Alembic otherwise)
        - Build the layout engine registry and start the undo sweeper

    Shutdown:
        - Stop the undo sweeper
        - Close database connections
    """
    # Startup
    configure_logging()
    logger.info(
        "application_startup",
        environment=settings.environment,
        assignment_store_type=settings.assignment_store_type,
    )

    if settings.environment == "development" and settings.assignment_store_type == "sql":
        logger.info("initializing_database_tables")
        try:
            await init_db()
        except Exception as exc:  # noqa: BLE001
            # The layout still serves defaults in fallback mode
            logger.error("database_init_failed", error=str(exc))

    registry = LayoutEngineRegistry(get_assignment_store())
    registry.start()
    app.state.layout_registry = registry

    yield

    # Shutdown
    logger.info("application_shutdown")
    await registry.stop()
    if settings.assignment_store_type == "sql":
        await close_db()


def create_app() -> FastAPI:
    """
    Create FastAPI application

    Returns:
        Configured FastAPI app instance

    Usage:
        app = create_app()
        uvicorn.run(app, host="0.0.0.0", port=8000)
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Department section layout service",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Success envelope middleware
    app.add_middleware(SuccessEnvelopeMiddleware)

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_hosts,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(
        department_layout.router,
        prefix=settings.api_v1_prefix,
    )

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        """
        Health check endpoint

        Returns:
            Status dict
        """
        return {
            "status": "ok",
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        }

    logger.info("fastapi_app_created", routes=len(app.routes))

    return app


# Application instance
app = create_app()

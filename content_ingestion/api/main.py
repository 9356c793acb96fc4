"""
FastAPI application with assembled routers.

Initializes FastAPI app with the ingestion routers and configures uvicorn server.

Dependencies: fastapi, content_ingestion.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

import uvicorn
from fastapi import FastAPI

from content_ingestion.api.deps.dependencies import (
    get_service_container,
    set_service_container,
)
from content_ingestion.boundary.db.create_tables import create_all_tables
from content_ingestion.core.document_processing.container import ServiceContainer
from content_ingestion.observability.logger import configure_logging
from content_ingestion.observability.middleware import (
    CorrelationMiddleware,
    RequestLoggingMiddleware,
)

from .routers import documents_router, health_router

logger = logging.getLogger(__name__)


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Args:
        container: Prebuilt service container (built from settings if None)

    Returns:
        FastAPI: Configured application instance with all routers registered
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build services, sweep orphaned runs on startup and dispose services on shutdown."""
        if container is not None:
            set_service_container(container)
        services = get_service_container()
        configure_logging(services.settings.log_level)

        if services.settings.database.create_tables_on_startup:
            await create_all_tables(services.engine)

        # Runs interrupted by a previous shutdown never reach a terminal status
        orphan_after = timedelta(seconds=services.settings.ingestion.orphan_after_seconds)
        await services.orchestrator.recover_orphaned(orphan_after)
        logger.info(f"{__name__}:lifespan - Ingestion services ready")

        yield

        await services.close()
        set_service_container(None)
        logger.info(f"{__name__}:lifespan - Ingestion services closed")

    app = FastAPI(
        title="Content Ingestion API",
        description="Ingests PDFs, web pages and raw text into chunked, embedded documents",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(documents_router, prefix="/api/v1")

    return app


if __name__ == "__main__":
    uvicorn.run(
        "content_ingestion.api.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
    )

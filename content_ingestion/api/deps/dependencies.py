"""
Dependency injection container.

Factory functions for FastAPI dependencies.

Dependencies: fastapi, content_ingestion.core.document_processing
System role: DI container for service injection
"""

from fastapi import Header, HTTPException

from content_ingestion.core.document_processing.container import ServiceContainer
from content_ingestion.core.document_processing.entrypoint import IngestionOrchestrator

MAX_OWNER_ID_LENGTH = 255

# Global service container, built by the application lifespan
_service_container: ServiceContainer | None = None


def set_service_container(container: ServiceContainer | None) -> None:
    """Install (or clear) the process-wide service container."""
    global _service_container
    _service_container = container


def get_service_container() -> ServiceContainer:
    """
    Get the service container, creating one from settings on first use.

    Returns:
        ServiceContainer: Process-wide container
    """
    global _service_container
    if _service_container is None:
        _service_container = ServiceContainer()
    return _service_container


def get_orchestrator() -> IngestionOrchestrator:
    """Get the shared ingestion orchestrator."""
    return get_service_container().orchestrator


def get_owner_id(x_owner_id: str = Header(..., alias="X-Owner-Id")) -> str:
    """
    Read the caller's owner id from the X-Owner-Id header.

    Raises:
        HTTPException(400): Header empty or too long
    """
    owner_id = x_owner_id.strip()
    if not owner_id or len(owner_id) > MAX_OWNER_ID_LENGTH:
        raise HTTPException(status_code=400, detail="Invalid X-Owner-Id header")
    return owner_id

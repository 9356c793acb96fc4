"""FastAPI dependencies."""

from content_ingestion.api.deps.dependencies import (
    get_orchestrator,
    get_owner_id,
    get_service_container,
    set_service_container,
)

__all__ = [
    "get_orchestrator",
    "get_owner_id",
    "get_service_container",
    "set_service_container",
]

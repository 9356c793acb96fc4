"""API request/response schemas."""

from content_ingestion.models.document import (
    DeletionResponse,
    DocumentListResponse,
    DocumentResponse,
    ErrorResponse,
    IngestionResponse,
    TextIngestRequest,
    UrlIngestRequest,
)

__all__ = [
    "DeletionResponse",
    "DocumentListResponse",
    "DocumentResponse",
    "ErrorResponse",
    "IngestionResponse",
    "TextIngestRequest",
    "UrlIngestRequest",
]

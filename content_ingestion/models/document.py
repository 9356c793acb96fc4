"""
Document domain models and schemas.

Request/response schemas for document ingestion operations.

Dependencies: pydantic
System role: Document API contracts
"""

from datetime import datetime

from pydantic import BaseModel, Field

from content_ingestion.boundary.db.models.document_model import DocumentStatus, SourceKind
from content_ingestion.core.exceptions import ErrorKind


class TextIngestRequest(BaseModel):
    """Request schema for ingesting raw text."""

    content: str = Field(description="Raw text to ingest")
    title: str | None = Field(default=None, description="Optional document title")


class UrlIngestRequest(BaseModel):
    """Request schema for ingesting a remote web page."""

    url: str = Field(description="HTTPS URL of the page to fetch")
    title: str | None = Field(default=None, description="Optional document title")


class IngestionResponse(BaseModel):
    """Response schema for ingestion and re-ingestion."""

    document_id: str
    status: DocumentStatus
    chunk_count: int = 0
    error_kind: ErrorKind | None = None
    error_message: str | None = None
    processing_time_ms: float = 0.0


class DocumentResponse(BaseModel):
    """Response schema for a single document."""

    id: str
    owner_id: str
    title: str
    source_kind: SourceKind
    source_url: str | None = None
    original_filename: str | None = None
    status: DocumentStatus
    chunk_count: int = 0
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime
    processed_at: datetime | None = None


class DocumentListResponse(BaseModel):
    """Document list response."""

    documents: list[DocumentResponse]
    total: int


class DeletionResponse(BaseModel):
    """Response schema for document deletion."""

    document_id: str
    deleted: bool
    status: DocumentStatus | None = None
    error_message: str | None = None


class ErrorResponse(BaseModel):
    """Error body returned for rejected requests."""

    error_kind: ErrorKind
    detail: str
    details: dict = Field(default_factory=dict)

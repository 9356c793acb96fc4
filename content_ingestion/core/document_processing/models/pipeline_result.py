"""
Pipeline result models for document processing.

Represents the outcome of ingestion and deletion, and the document view
returned to callers.

Dependencies: pydantic
System role: Return types for IngestionOrchestrator
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from content_ingestion.boundary.db.models.document_model import DocumentStatus, SourceKind
from content_ingestion.core.exceptions import ErrorKind


class IngestionResult(BaseModel):
    """Result of one ingestion attempt."""

    document_id: str = Field(description="Unique document identifier")
    status: DocumentStatus = Field(description="Terminal status of the attempt")
    chunk_count: int = Field(default=0, description="Number of chunks written")
    error_kind: ErrorKind | None = Field(default=None, description="Failure classification")
    error_message: str | None = Field(default=None, description="Failure description")
    processing_time_ms: float = Field(default=0.0, description="Wall-clock duration")


class DeletionResult(BaseModel):
    """Result of one deletion attempt."""

    document_id: str = Field(description="Document identifier")
    deleted: bool = Field(description="True once the document and its vectors are gone")
    status: DocumentStatus | None = Field(
        default=None,
        description="Remaining status when the deletion did not complete",
    )
    error_message: str | None = Field(default=None, description="Failure description")


class DocumentRecord(BaseModel):
    """Caller-facing view of a document row."""

    model_config = ConfigDict(from_attributes=True)

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

    @classmethod
    def from_model(cls, model) -> "DocumentRecord":
        """Build a record from a DocumentModel."""
        return cls(
            id=str(model.id),
            owner_id=model.owner_id,
            title=model.title,
            source_kind=model.source_kind,
            source_url=model.source_url,
            original_filename=model.original_filename,
            status=model.status,
            chunk_count=model.chunk_count,
            error_message=model.error_message,
            created_at=model.created_at,
            updated_at=model.updated_at,
            processed_at=model.processed_at,
        )

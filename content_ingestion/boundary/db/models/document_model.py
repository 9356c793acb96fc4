"""
Document ORM model.

Represents one ingested source item with its lifecycle status.
Tracks the ingestion lifecycle from submission to vector storage.

Dependencies: sqlalchemy, content_ingestion.boundary.db.base
System role: Document persistence for ingestion tracking
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from content_ingestion.boundary.db.base import Base, TimestampMixin, UUIDMixin


class DocumentStatus(str, enum.Enum):
    """
    Document processing lifecycle states.

    UPLOADING: Row created and quota reserved, pipeline not started
    PROCESSING: Extraction, chunking and embedding in progress
    READY: Chunks and vectors written; chunk_count is authoritative
    FAILED: Processing error; error_message field contains details
    DELETION_PENDING: Deletion started and not yet completed
    """

    UPLOADING = "uploading"
    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"
    DELETION_PENDING = "deletion_pending"


class SourceKind(str, enum.Enum):
    """Kinds of source material accepted for ingestion."""

    BINARY_DOCUMENT = "binary_document"
    REMOTE_URL = "remote_url"
    RAW_TEXT = "raw_text"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class DocumentModel(Base, UUIDMixin, TimestampMixin):
    """
    Document ORM model tracking ingestion pipeline state.

    Lifecycle: UPLOADING → PROCESSING → READY or FAILED. FAILED and READY
    documents may re-enter PROCESSING through re-ingestion. Any status may
    move to DELETION_PENDING; only the deletion saga removes the row.

    Attributes:
        id: UUID primary key (auto-generated)
        owner_id: Opaque owner identifier supplied by the caller
        title: Display title (200 char limit)
        source_kind: Kind of submitted source
        source_url: Remote URL for web pages
        original_filename: Uploaded filename for binary documents
        status: Current processing state
        chunk_count: Number of chunks written by the last successful run
        error_message: Null if success; human-readable error if FAILED (2048 char limit)
        processed_at: Time the document last became READY
        created_at: Submission timestamp (UTC)
        updated_at: Last status change timestamp (UTC)

    Relationships:
        chunks: Child ChunkModels (cascade delete)
    """

    __tablename__ = "documents"

    owner_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        doc="Display title",
    )

    source_kind: Mapped[SourceKind] = mapped_column(
        Enum(SourceKind, native_enum=False, length=32, values_callable=_enum_values),
        nullable=False,
    )

    source_url: Mapped[str | None] = mapped_column(
        String(2048),
        nullable=True,
    )

    original_filename: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    status: Mapped[DocumentStatus] = mapped_column(
        Enum(DocumentStatus, native_enum=False, length=32, values_callable=_enum_values),
        nullable=False,
        default=DocumentStatus.UPLOADING,
        index=True,
    )

    chunk_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    error_message: Mapped[str | None] = mapped_column(
        String(2048),
        nullable=True,
        doc="Error details if processing failed",
    )

    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    chunks = relationship(
        "ChunkModel",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ChunkModel.position",
    )

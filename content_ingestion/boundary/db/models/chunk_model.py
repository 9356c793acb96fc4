"""
Chunk ORM model.

Stores the text fragments produced for a document. Each row maps to exactly
one vector record keyed by vector_key.

Dependencies: sqlalchemy, content_ingestion.boundary.db.base
System role: Chunk persistence alongside the vector index
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from content_ingestion.boundary.db.base import Base, UUIDMixin, utc_now


def build_vector_key(document_id: uuid.UUID | str, position: int) -> str:
    """
    Derive the vector key for a chunk.

    Args:
        document_id: Owning document UUID
        position: Zero-based chunk position

    Returns:
        str: Deterministic key shared by the chunk row and its vector
    """
    return f"{document_id}_{position}"


class ChunkModel(Base, UUIDMixin):
    """
    Chunk ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        document_id: Foreign key to DocumentModel (cascade delete)
        content: Chunk text including any leading overlap
        position: Zero-based position, contiguous per document
        token_count: Tokens in content
        vector_key: Key of the matching vector record (unique)
        start_offset: Start of the chunk body in the sanitized source text
        end_offset: End (exclusive) of the chunk body in the source text
        created_at: Row creation timestamp (UTC)

    Constraints:
        (document_id, position) unique
    """

    __tablename__ = "chunks"
    __table_args__ = (
        UniqueConstraint("document_id", "position", name="uq_chunks_document_position"),
    )

    document_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    token_count: Mapped[int] = mapped_column(Integer, nullable=False)
    vector_key: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    start_offset: Mapped[int] = mapped_column(Integer, nullable=False)
    end_offset: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    # Relationships
    document = relationship("DocumentModel", back_populates="chunks")

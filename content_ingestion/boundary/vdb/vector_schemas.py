"""
Vector database schemas.

Pydantic models for vector operations (records, metadata, filters).
Used for type-safe vector store interactions.

Dependencies: pydantic
System role: Type definitions for vector operations
"""

from typing import Any

from pydantic import BaseModel, Field


class VectorMetadata(BaseModel):
    """
    Metadata attached to each vector.

    Note: owner_id and document_id are strings because S3 Vectors
    metadata stores UUIDs as strings.
    """

    owner_id: str = Field(description="Owner identifier for tenant isolation")
    document_id: str = Field(description="Owning document ID")
    position: int = Field(description="Zero-based chunk position in the document")
    source_kind: str = Field(description="Kind of source the chunk came from")
    created_at: str = Field(description="ISO-8601 creation timestamp")
    text: str = Field(description="Raw chunk text for retrieval-time display")
    namespace: str = Field(default="content", description="Content namespace")


class VectorRecord(BaseModel):
    """One vector with its key and metadata."""

    key: str = Field(description="Deterministic vector key ({document_id}_{position})")
    values: list[float] = Field(description="Embedding vector")
    metadata: VectorMetadata = Field(description="Vector metadata")


class MetadataFilter(BaseModel):
    """Equality filter over vector metadata, always scoped to a namespace."""

    owner_id: str | None = Field(default=None, description="Filter by owner")
    document_id: str | None = Field(default=None, description="Filter by document")
    min_position: int | None = Field(
        default=None,
        description="Only positions greater than or equal to this value",
    )

    def matches(self, metadata: dict[str, Any], namespace: str) -> bool:
        """
        Check whether raw metadata satisfies this filter.

        Args:
            metadata: Vector metadata as stored
            namespace: Namespace the caller operates in

        Returns:
            bool: True when every set criterion matches
        """
        if metadata.get("namespace") != namespace:
            return False
        if self.owner_id is not None and metadata.get("owner_id") != self.owner_id:
            return False
        if self.document_id is not None and metadata.get("document_id") != self.document_id:
            return False
        if self.min_position is not None:
            position = metadata.get("position")
            if position is None or int(position) < self.min_position:
                return False
        return True

"""
Database models package.

Exports:
  - DocumentModel, DocumentStatus, SourceKind: Document ORM model and enums
  - ChunkModel, build_vector_key: Chunk ORM model and key derivation
  - OwnerQuotaModel: Per-owner document counter

Dependencies: sqlalchemy, content_ingestion.boundary.db.base
System role: Database model definitions for domain entities
"""

from content_ingestion.boundary.db.models.chunk_model import ChunkModel, build_vector_key
from content_ingestion.boundary.db.models.document_model import (
    DocumentModel,
    DocumentStatus,
    SourceKind,
)
from content_ingestion.boundary.db.models.quota_model import OwnerQuotaModel

__all__ = [
    "ChunkModel",
    "DocumentModel",
    "DocumentStatus",
    "OwnerQuotaModel",
    "SourceKind",
    "build_vector_key",
]

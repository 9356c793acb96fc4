"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - create_engine_from_settings(), create_session_factory(): Engine construction
  - get_async_engine(), get_async_session_factory(), get_async_db(): Async connection management
  - DocumentModel, ChunkModel, OwnerQuotaModel: Domain entities
  - DocumentStatus, SourceKind: Enum types for state tracking
  - document_crud, chunk_crud, quota_crud: CRUD operation singletons

Dependencies: sqlalchemy, content_ingestion.configs
System role: Relational store for documents, chunks and owner quotas.
"""

from content_ingestion.boundary.db.base import Base, TimestampMixin, UUIDMixin
from content_ingestion.boundary.db.connection import (
    create_engine_from_settings,
    create_session_factory,
    get_async_db,
    get_async_engine,
    get_async_session_factory,
)
from content_ingestion.boundary.db.models import (
    ChunkModel,
    DocumentModel,
    DocumentStatus,
    OwnerQuotaModel,
    SourceKind,
    build_vector_key,
)
from content_ingestion.boundary.db.CRUD import (
    BaseCRUD,
    ChunkCRUD,
    DocumentCRUD,
    QuotaCRUD,
    chunk_crud,
    document_crud,
    quota_crud,
)

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Connection
    "create_engine_from_settings",
    "create_session_factory",
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    # Models
    "ChunkModel",
    "DocumentModel",
    "DocumentStatus",
    "OwnerQuotaModel",
    "SourceKind",
    "build_vector_key",
    # CRUD classes
    "BaseCRUD",
    "ChunkCRUD",
    "DocumentCRUD",
    "QuotaCRUD",
    # CRUD singletons
    "chunk_crud",
    "document_crud",
    "quota_crud",
]

"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from content_ingestion.boundary.db.CRUD import document_crud, chunk_crud, quota_crud

    document = await document_crud.get_by_id(db, document_id)
"""

from content_ingestion.boundary.db.CRUD.base_crud import BaseCRUD
from content_ingestion.boundary.db.CRUD.chunk_crud import ChunkCRUD, chunk_crud
from content_ingestion.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from content_ingestion.boundary.db.CRUD.quota_crud import QuotaCRUD, quota_crud

__all__ = [
    "BaseCRUD",
    "ChunkCRUD",
    "DocumentCRUD",
    "QuotaCRUD",
    "chunk_crud",
    "document_crud",
    "quota_crud",
]

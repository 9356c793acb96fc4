"""
Vector database boundary layer.

Exports the VectorStoreBase contract, its implementations and schemas.
"""

from content_ingestion.boundary.vdb.base import VectorStoreBase
from content_ingestion.boundary.vdb.memory_vectors_store import MemoryVectorStore
from content_ingestion.boundary.vdb.s3_vectors_store import S3VectorsStore
from content_ingestion.boundary.vdb.vector_schemas import (
    MetadataFilter,
    VectorMetadata,
    VectorRecord,
)
from content_ingestion.boundary.vdb.vector_store_factory import get_vector_store

__all__ = [
    "MemoryVectorStore",
    "MetadataFilter",
    "S3VectorsStore",
    "VectorMetadata",
    "VectorRecord",
    "VectorStoreBase",
    "get_vector_store",
]

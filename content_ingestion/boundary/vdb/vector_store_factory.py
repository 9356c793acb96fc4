"""
Vector store factory for selecting between the memory store (dev) and S3 Vectors (prod).

Depends on VECTOR_STORE_STORE_TYPE environment variable.
Provides consistent interface regardless of underlying implementation.

Dependencies: content_ingestion.boundary.vdb, content_ingestion.configs
System role: Vector store instantiation and selection
"""

import logging

from content_ingestion.boundary.vdb.base import VectorStoreBase
from content_ingestion.boundary.vdb.memory_vectors_store import MemoryVectorStore
from content_ingestion.boundary.vdb.s3_vectors_store import S3VectorsStore
from content_ingestion.configs.vector_store import VectorStoreSettings

logger = logging.getLogger(__name__)


def get_vector_store(config: VectorStoreSettings) -> VectorStoreBase:
    """
    Build the vector store selected by configuration.

    Args:
        config: Vector store settings

    Returns:
        VectorStoreBase: MemoryVectorStore or S3VectorsStore

    Raises:
        ValueError: If the store type is invalid
    """
    store_type = config.store_type.lower()

    if store_type == "memory":
        logger.info(f"{__name__}:get_vector_store - Creating memory vector store (local dev mode)")
        return MemoryVectorStore(namespace=config.namespace, dimension=config.dimension)

    if store_type == "s3":
        logger.info(f"{__name__}:get_vector_store - Creating S3 Vectors store (production mode)")
        return S3VectorsStore(
            vectors_bucket=config.vectors_bucket,
            index_name=config.index_name,
            region=config.aws_region,
            namespace=config.namespace,
            dimension=config.dimension,
            batch_size=config.write_batch_size,
        )

    raise ValueError(f"Invalid vector store type: {store_type}. Must be 'memory' or 's3'")

"""
Vector store interface.

Every implementation scopes all operations to one content namespace.

Dependencies: content_ingestion.boundary.vdb.vector_schemas
System role: Contract between the pipeline and concrete vector stores
"""

from abc import ABC, abstractmethod

from content_ingestion.boundary.vdb.vector_schemas import MetadataFilter, VectorRecord


class VectorStoreBase(ABC):
    """Abstract vector store used by the ingestion pipeline."""

    def __init__(self, namespace: str = "content", dimension: int = 1024) -> None:
        self.namespace = namespace
        self.dimension = dimension

    @abstractmethod
    async def upsert(self, records: list[VectorRecord]) -> int:
        """
        Insert or overwrite vectors by key.

        Args:
            records: Vectors to write

        Returns:
            int: Number of vectors written

        Raises:
            VectorStoreError: When the write fails
        """

    @abstractmethod
    async def query(self, filters: MetadataFilter, limit: int = 100) -> list[VectorRecord]:
        """
        List vectors whose metadata matches the filter.

        Args:
            filters: Metadata filter
            limit: Maximum number of records to return

        Returns:
            list[VectorRecord]: Matching records
        """

    @abstractmethod
    async def fetch(self, keys: list[str]) -> list[VectorRecord]:
        """Return the records stored under the given keys (missing keys are skipped)."""

    @abstractmethod
    async def delete(self, keys: list[str]) -> int:
        """
        Delete vectors by key. Missing keys are ignored.

        Args:
            keys: Vector keys

        Returns:
            int: Number of keys submitted for deletion
        """

    @abstractmethod
    async def delete_by_filter(self, filters: MetadataFilter) -> int:
        """
        Delete every vector matching the filter.

        Args:
            filters: Metadata filter

        Returns:
            int: Number of vectors deleted
        """

"""
In-process vector store for local development and tests.

Provides the same interface as S3VectorsStore, holding records in a dict.

Dependencies: content_ingestion.boundary.vdb.base
System role: Local vector store for development
"""

import asyncio
import logging

from content_ingestion.boundary.vdb.base import VectorStoreBase
from content_ingestion.boundary.vdb.vector_schemas import MetadataFilter, VectorRecord
from content_ingestion.core.exceptions import VectorStoreError

logger = logging.getLogger(__name__)


class MemoryVectorStore(VectorStoreBase):
    """Dictionary-backed vector store keyed by vector key."""

    def __init__(self, namespace: str = "content", dimension: int = 1024) -> None:
        super().__init__(namespace=namespace, dimension=dimension)
        self._records: dict[str, VectorRecord] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def keys(self) -> list[str]:
        """All stored keys, sorted."""
        return sorted(self._records)

    async def upsert(self, records: list[VectorRecord]) -> int:
        for record in records:
            if len(record.values) != self.dimension:
                raise VectorStoreError(
                    f"Vector {record.key} has dimension {len(record.values)}, "
                    f"expected {self.dimension}",
                    operation="upsert",
                )
        async with self._lock:
            for record in records:
                stamped = record.model_copy(
                    update={
                        "metadata": record.metadata.model_copy(
                            update={"namespace": self.namespace}
                        )
                    }
                )
                self._records[record.key] = stamped
        logger.debug(
            f"{__name__}:upsert - Stored vectors",
            extra={"count": len(records)},
        )
        return len(records)

    async def query(self, filters: MetadataFilter, limit: int = 100) -> list[VectorRecord]:
        matches = [
            record
            for key, record in sorted(self._records.items())
            if filters.matches(record.metadata.model_dump(), self.namespace)
        ]
        return matches[:limit]

    async def fetch(self, keys: list[str]) -> list[VectorRecord]:
        return [self._records[key] for key in keys if key in self._records]

    async def delete(self, keys: list[str]) -> int:
        async with self._lock:
            for key in keys:
                self._records.pop(key, None)
        return len(keys)

    async def delete_by_filter(self, filters: MetadataFilter) -> int:
        async with self._lock:
            doomed = [
                key
                for key, record in self._records.items()
                if filters.matches(record.metadata.model_dump(), self.namespace)
            ]
            for key in doomed:
                del self._records[key]
        return len(doomed)

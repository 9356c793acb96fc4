"""
Vector store write task.

Builds vector records for a document's chunks and writes or deletes them
through the configured vector store.

Dependencies: tenacity, content_ingestion.boundary.vdb
System role: Final stage of the ingestion pipeline and first step of deletion
"""

import logging
from datetime import datetime

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from content_ingestion.boundary.db.models.chunk_model import build_vector_key
from content_ingestion.boundary.vdb.base import VectorStoreBase
from content_ingestion.boundary.vdb.vector_schemas import (
    MetadataFilter,
    VectorMetadata,
    VectorRecord,
)
from content_ingestion.core.document_processing.models import TextChunk
from content_ingestion.core.exceptions import VectorStoreError

logger = logging.getLogger(__name__)


class VectorStoreTask:
    """Write and delete document vectors."""

    def __init__(
        self,
        vector_store: VectorStoreBase,
        delete_attempts: int = 3,
        retry_initial_seconds: float = 1.0,
    ) -> None:
        """
        Initialize vector store task.

        Args:
            vector_store: Target vector store
            delete_attempts: Attempts for filtered deletes
            retry_initial_seconds: First backoff delay between delete attempts
        """
        self._vector_store = vector_store
        self._delete_attempts = delete_attempts
        self._retry_initial = retry_initial_seconds

    @property
    def namespace(self) -> str:
        return self._vector_store.namespace

    def build_records(
        self,
        document_id: str,
        owner_id: str,
        source_kind: str,
        chunks: list[TextChunk],
        embeddings: list[list[float]],
        created_at: datetime,
    ) -> list[VectorRecord]:
        """
        Pair chunks with their embeddings.

        Args:
            document_id: Owning document ID
            owner_id: Owner identifier
            source_kind: Source kind value
            chunks: Chunks in position order
            embeddings: One vector per chunk
            created_at: Timestamp stamped on every record

        Returns:
            list[VectorRecord]: Records keyed by {document_id}_{position}

        Raises:
            ValueError: When chunk and embedding counts differ
        """
        if len(chunks) != len(embeddings):
            raise ValueError(
                f"Got {len(embeddings)} embeddings for {len(chunks)} chunks"
            )

        timestamp = created_at.isoformat()
        return [
            VectorRecord(
                key=build_vector_key(document_id, chunk.position),
                values=vector,
                metadata=VectorMetadata(
                    owner_id=owner_id,
                    document_id=document_id,
                    position=chunk.position,
                    source_kind=source_kind,
                    created_at=timestamp,
                    text=chunk.text,
                    namespace=self.namespace,
                ),
            )
            for chunk, vector in zip(chunks, embeddings)
        ]

    async def upload(self, records: list[VectorRecord], document_id: str) -> int:
        """
        Upsert records.

        Args:
            records: Records to write
            document_id: Owning document ID (for logging)

        Returns:
            int: Number of records written

        Raises:
            VectorStoreError: When the write fails
        """
        count = await self._vector_store.upsert(records)
        logger.info(
            f"{__name__}:upload - Uploaded vectors",
            extra={"document_id": document_id, "chunk_count": count},
        )
        return count

    async def delete_keys(self, keys: list[str]) -> int:
        """Delete vectors by key."""
        if not keys:
            return 0
        return await self._vector_store.delete(keys)

    async def delete_document(self, document_id: str) -> int:
        """
        Delete every vector of a document, retrying transient failures.

        Args:
            document_id: Document ID

        Returns:
            int: Number of vectors deleted

        Raises:
            VectorStoreError: When all attempts fail
        """
        filters = MetadataFilter(document_id=document_id)
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(VectorStoreError),
            stop=stop_after_attempt(self._delete_attempts),
            wait=wait_exponential_jitter(
                initial=self._retry_initial, max=30, jitter=self._retry_initial
            ),
            reraise=True,
        ):
            with attempt:
                deleted = await self._vector_store.delete_by_filter(filters)

        logger.info(
            f"{__name__}:delete_document - Deleted vectors",
            extra={"document_id": document_id, "deleted": deleted},
        )
        return deleted

"""
S3 Vectors store for production.

Writes, lists and deletes chunk vectors in an Amazon S3 Vectors index.
boto3 calls are blocking and run in worker threads.

Metadata Keys (matching the index definition):
- Filterable: owner_id, document_id, position, source_kind, namespace, created_at
- Non-filterable: text

Dependencies: boto3, botocore, content_ingestion.boundary.vdb.vector_schemas
System role: Production vector store (S3 Vectors)
"""

import asyncio
import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from content_ingestion.boundary.vdb.base import VectorStoreBase
from content_ingestion.boundary.vdb.vector_schemas import (
    MetadataFilter,
    VectorMetadata,
    VectorRecord,
)
from content_ingestion.core.exceptions import VectorStoreError

logger = logging.getLogger(__name__)

# Service limit for keys/vectors per request
MAX_BATCH = 500


class S3VectorsStore(VectorStoreBase):
    """
    S3 Vectors store.

    Namespace isolation is implemented with a ``namespace`` metadata field
    stamped on every write and checked on every read or filtered delete.
    """

    def __init__(
        self,
        vectors_bucket: str,
        index_name: str,
        region: str = "us-east-1",
        namespace: str = "content",
        dimension: int = 1024,
        batch_size: int = MAX_BATCH,
        client: Any = None,
    ) -> None:
        """
        Initialize S3 Vectors store.

        Args:
            vectors_bucket: S3 Vectors bucket name
            index_name: Index name within the bucket
            region: AWS region for S3 Vectors
            namespace: Content namespace
            dimension: Expected embedding dimension
            batch_size: Vectors per put/delete request (at most 500)
            client: Preconfigured boto3 s3vectors client

        Raises:
            ValueError: When vectors_bucket or index_name is empty
        """
        if not vectors_bucket:
            raise ValueError("vectors_bucket cannot be empty")
        if not index_name:
            raise ValueError("index_name cannot be empty")

        super().__init__(namespace=namespace, dimension=dimension)
        self._vectors_bucket = vectors_bucket
        self._index_name = index_name
        self._batch_size = min(batch_size, MAX_BATCH)
        self._client = client or boto3.client("s3vectors", region_name=region)

        logger.info(
            f"{__name__}:__init__ - S3 Vectors store ready",
            extra={"bucket": vectors_bucket, "index": index_name, "namespace": namespace},
        )

    def _batches(self, items: list) -> list[list]:
        return [items[i:i + self._batch_size] for i in range(0, len(items), self._batch_size)]

    def _to_entry(self, record: VectorRecord) -> dict[str, Any]:
        metadata = record.metadata.model_copy(update={"namespace": self.namespace})
        return {
            "key": record.key,
            "data": {"float32": [float(v) for v in record.values]},
            "metadata": metadata.model_dump(mode="json"),
        }

    def _from_entry(self, entry: dict[str, Any]) -> VectorRecord:
        return VectorRecord(
            key=entry["key"],
            values=list(entry.get("data", {}).get("float32", [])),
            metadata=VectorMetadata(**entry.get("metadata", {})),
        )

    async def _call(self, operation: str, method: str, **kwargs) -> dict[str, Any]:
        try:
            return await asyncio.to_thread(getattr(self._client, method), **kwargs)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"{__name__}:{operation} - {type(e).__name__}: {e}")
            raise VectorStoreError(
                f"S3 Vectors {operation} failed: {e}",
                operation=operation,
                details={"bucket": self._vectors_bucket, "index": self._index_name},
            ) from e

    async def upsert(self, records: list[VectorRecord]) -> int:
        for record in records:
            if len(record.values) != self.dimension:
                raise VectorStoreError(
                    f"Vector {record.key} has dimension {len(record.values)}, "
                    f"expected {self.dimension}",
                    operation="upsert",
                )

        entries = [self._to_entry(record) for record in records]
        for batch in self._batches(entries):
            await self._call(
                "upsert",
                "put_vectors",
                vectorBucketName=self._vectors_bucket,
                indexName=self._index_name,
                vectors=batch,
            )

        logger.info(
            f"{__name__}:upsert - Uploaded vectors",
            extra={"count": len(entries), "index": self._index_name},
        )
        return len(entries)

    async def _scan(self, filters: MetadataFilter, limit: int | None) -> list[dict[str, Any]]:
        """Page through the index and keep entries whose metadata matches."""
        matches: list[dict[str, Any]] = []
        next_token: str | None = None
        while True:
            kwargs: dict[str, Any] = {
                "vectorBucketName": self._vectors_bucket,
                "indexName": self._index_name,
                "maxResults": 1000,
                "returnMetadata": True,
                "returnData": True,
            }
            if next_token:
                kwargs["nextToken"] = next_token
            response = await self._call("query", "list_vectors", **kwargs)

            for entry in response.get("vectors", []):
                if filters.matches(entry.get("metadata", {}), self.namespace):
                    matches.append(entry)
                    if limit is not None and len(matches) >= limit:
                        return matches

            next_token = response.get("nextToken")
            if not next_token:
                return matches

    async def query(self, filters: MetadataFilter, limit: int = 100) -> list[VectorRecord]:
        entries = await self._scan(filters, limit)
        return [self._from_entry(entry) for entry in entries]

    async def fetch(self, keys: list[str]) -> list[VectorRecord]:
        records: list[VectorRecord] = []
        for batch in self._batches(keys):
            response = await self._call(
                "fetch",
                "get_vectors",
                vectorBucketName=self._vectors_bucket,
                indexName=self._index_name,
                keys=batch,
                returnData=True,
                returnMetadata=True,
            )
            records.extend(self._from_entry(entry) for entry in response.get("vectors", []))
        return records

    async def delete(self, keys: list[str]) -> int:
        for batch in self._batches(keys):
            await self._call(
                "delete",
                "delete_vectors",
                vectorBucketName=self._vectors_bucket,
                indexName=self._index_name,
                keys=batch,
            )
        if keys:
            logger.info(
                f"{__name__}:delete - Deleted vectors",
                extra={"count": len(keys), "index": self._index_name},
            )
        return len(keys)

    async def delete_by_filter(self, filters: MetadataFilter) -> int:
        entries = await self._scan(filters, limit=None)
        keys = [entry["key"] for entry in entries]
        return await self.delete(keys)

"""
Document ingestion orchestrator.

Drives one source submission end-to-end: quota reservation, extraction,
chunking, embedding and the combined relational/vector write. Also owns
re-ingestion, the deletion saga and recovery of orphaned runs.

Ordering guarantees:
- Nothing is written to either store before validation and quota pass.
- Chunk rows, vector upsert and the READY transition share one
  relational transaction; a failed upsert rolls back every row of the
  attempt and the document ends FAILED.
- Each call returns with the document in a terminal status (or raises
  before a document exists). No work continues in the background.

Dependencies: sqlalchemy, tenacity, All task modules, content_ingestion.boundary.db
System role: Pipeline orchestration (coordinates only)
"""

import asyncio
import logging
import time
from datetime import timedelta
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from content_ingestion.boundary.db.base import utc_now
from content_ingestion.boundary.db.CRUD import chunk_crud, document_crud, quota_crud
from content_ingestion.boundary.db.models import DocumentStatus, SourceKind, build_vector_key
from content_ingestion.core.document_processing.database.document_status_updater import (
    DocumentStatusUpdater,
    truncate_error,
)
from content_ingestion.core.document_processing.models import (
    DeletionResult,
    DocumentRecord,
    IngestionResult,
    SourceSubmission,
    TextChunk,
)
from content_ingestion.core.document_processing.tasks import (
    ChunkingTask,
    EmbeddingTask,
    ExtractionTask,
    VectorStoreTask,
)
from content_ingestion.core.exceptions import (
    DocumentNotFoundError,
    ErrorKind,
    IngestionError,
    InvalidStatusTransitionError,
    QuotaExceededError,
    ValidationError,
    VectorStoreError,
)
from content_ingestion.core.text.sanitizer import sanitize
from content_ingestion.observability.correlation import correlation_scope
from content_ingestion.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Ingestion cancelled"


class IngestionOrchestrator:
    """Orchestrate ingestion: prevalidate -> reserve -> extract -> chunk -> embed -> persist."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        extractor: ExtractionTask,
        chunker: ChunkingTask,
        embedder: EmbeddingTask,
        vector_task: VectorStoreTask,
        max_documents_per_owner: int = 50,
        max_title_length: int = 200,
        deletion_attempts: int = 3,
        retry_initial_seconds: float = 1.0,
        orphan_after: timedelta = timedelta(hours=1),
    ) -> None:
        """
        Initialize orchestrator with its collaborators.

        Args:
            session_factory: Async session factory for the relational store
            extractor: Content extraction task
            chunker: Chunking task
            embedder: Embedding task (holds the shared rate limiter)
            vector_task: Vector write/delete task
            max_documents_per_owner: Per-owner document quota
            max_title_length: Maximum stored title length
            deletion_attempts: Attempts for the relational deletion step
            retry_initial_seconds: First backoff delay for deletion retries
            orphan_after: Age after which a PROCESSING run counts as orphaned
        """
        self._session_factory = session_factory
        self._extractor = extractor
        self._chunker = chunker
        self._embedder = embedder
        self._vector_task = vector_task
        self._max_documents = max_documents_per_owner
        self._max_title_length = max_title_length
        self._deletion_attempts = deletion_attempts
        self._retry_initial = retry_initial_seconds
        self._orphan_after = orphan_after

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def ingest(self, owner_id: str, submission: SourceSubmission) -> IngestionResult:
        """
        Ingest one source submission for an owner.

        Args:
            owner_id: Opaque owner identifier
            submission: Source material

        Returns:
            IngestionResult: READY with chunk_count, or FAILED with error kind and message

        Raises:
            ValidationError: Submission rejected before any document was created
            SecurityBlockedError: URL rejected before any document was created
            QuotaExceededError: Owner already holds the maximum number of documents
            InvalidStatusTransitionError: Document was deleted or claimed by another run meanwhile
        """
        start_time = time.perf_counter()
        self._extractor.prevalidate(submission)

        document_id = await self._create_document(owner_id, submission)
        with correlation_scope(str(document_id)):
            logger.info(
                f"{__name__}:ingest - Document created",
                extra={"document_id": str(document_id), "source_kind": submission.kind.value},
            )
            return await self._run(document_id, owner_id, submission, start_time, reingest=False)

    async def reingest(
        self,
        document_id: UUID,
        submission: SourceSubmission | None = None,
    ) -> IngestionResult:
        """
        Re-run the pipeline for an existing document.

        Produces the same vector keys as the previous run for every position,
        and removes vectors for positions the new run no longer has.

        Args:
            document_id: Document UUID
            submission: New source material; remote URL documents may omit it

        Returns:
            IngestionResult: Outcome of the new run

        Raises:
            DocumentNotFoundError: Document not found
            ValidationError: Submission missing or of a different kind
            InvalidStatusTransitionError: Document is being uploaded, processed or deleted
        """
        start_time = time.perf_counter()
        async with self._session_factory() as session:
            document = await document_crud.get_by_id(session, document_id)
        if document is None:
            raise DocumentNotFoundError(str(document_id))

        if submission is None:
            if document.source_kind != SourceKind.REMOTE_URL or not document.source_url:
                raise ValidationError(
                    "Re-ingesting this document requires the source material again",
                    field="submission",
                    details={"source_kind": document.source_kind.value},
                )
            submission = SourceSubmission.from_url(document.source_url)
        elif submission.kind != document.source_kind:
            raise ValidationError(
                f"Document was ingested from {document.source_kind.value}, "
                f"got {submission.kind.value}",
                field="kind",
            )

        self._extractor.prevalidate(submission)

        with correlation_scope(str(document_id)):
            logger.info(
                f"{__name__}:reingest - Re-ingesting document",
                extra={"document_id": str(document_id), "previous_status": document.status.value},
            )
            return await self._run(
                document.id, document.owner_id, submission, start_time, reingest=True
            )

    async def _create_document(self, owner_id: str, submission: SourceSubmission) -> UUID:
        async with self._session_factory() as session:
            async with session.begin():
                reserved = await quota_crud.try_reserve(session, owner_id, self._max_documents)
                if not reserved:
                    logger.warning(
                        f"{__name__}:_create_document - Quota exceeded",
                        extra={"owner_id": owner_id, "limit": self._max_documents},
                    )
                    raise QuotaExceededError(owner_id, self._max_documents)

                document = await document_crud.create(
                    session,
                    owner_id=owner_id,
                    title=self._initial_title(submission),
                    source_kind=submission.kind,
                    source_url=submission.url,
                    original_filename=submission.filename,
                    status=DocumentStatus.UPLOADING,
                )
        return document.id

    def _initial_title(self, submission: SourceSubmission) -> str:
        for candidate in (submission.title, submission.filename, submission.url):
            cleaned = " ".join(sanitize(candidate or "").split())
            if cleaned:
                return cleaned[: self._max_title_length]
        return "Untitled"

    async def _run(
        self,
        document_id: UUID,
        owner_id: str,
        submission: SourceSubmission,
        start_time: float,
        reingest: bool,
    ) -> IngestionResult:
        async with self._session_factory() as session:
            async with session.begin():
                await DocumentStatusUpdater(session).mark_processing(
                    document_id,
                    reingest=reingest,
                    stale_before=utc_now() - self._orphan_after if reingest else None,
                )

        try:
            content = await self._extractor.extract(submission)
            chunks = await self._chunker.chunk(content.text)

            async def report_progress(completed: int, total: int) -> None:
                logger.info(
                    f"{__name__}:_run - Embedded {completed}/{total} chunks",
                    extra={"document_id": str(document_id)},
                )

            embeddings = await self._embedder.embed_all(
                [chunk.text for chunk in chunks],
                on_progress=report_progress,
            )
            await self._persist(
                document_id, owner_id, submission.kind, content.title, chunks, embeddings
            )
        except asyncio.CancelledError:
            logger.warning(
                f"{__name__}:_run - Ingestion cancelled",
                extra={"document_id": str(document_id)},
            )
            await asyncio.shield(self._mark_failed(document_id, CANCELLED_MESSAGE))
            raise
        except InvalidStatusTransitionError as e:
            # Another run or a deletion claimed the document; nothing of this run was written
            logger.warning(
                f"{__name__}:_run - Document changed hands during ingestion",
                extra={"document_id": str(document_id), "status": e.details.get("current")},
            )
            raise
        except IngestionError as e:
            logger.warning(
                f"{__name__}:_run - Ingestion failed: {e.kind.value}",
                extra={"document_id": str(document_id), "error_msg": e.message},
            )
            status = await self._mark_failed(document_id, e.message)
            return self._result(document_id, status, start_time, e.kind, e.message)
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:_run - Unexpected ingestion failure",
                e,
                document_id=str(document_id),
            )
            message = f"Internal error: {type(e).__name__}"
            status = await self._mark_failed(document_id, message)
            return self._result(document_id, status, start_time, ErrorKind.INTERNAL, message)

        result = self._result(document_id, DocumentStatus.READY, start_time)
        result.chunk_count = len(chunks)
        logger.info(
            f"{__name__}:_run - Document ready",
            extra={
                "document_id": str(document_id),
                "chunk_count": len(chunks),
                "processing_time_ms": result.processing_time_ms,
            },
        )
        return result

    async def _persist(
        self,
        document_id: UUID,
        owner_id: str,
        source_kind: SourceKind,
        title: str,
        chunks: list[TextChunk],
        embeddings: list[list[float]],
    ) -> None:
        """
        Claim the document, replace chunk rows and upsert vectors in one transaction.

        The READY transition runs first so its row lock is held until commit;
        a run whose document moved on (another run finished it, or deletion
        started) fails the claim before writing anything to either store.
        """
        records = self._vector_task.build_records(
            str(document_id), owner_id, source_kind.value, chunks, embeddings, utc_now()
        )
        new_keys = {record.key for record in records}
        rows = [
            {
                "document_id": document_id,
                "content": chunk.text,
                "position": chunk.position,
                "token_count": chunk.token_count,
                "vector_key": build_vector_key(str(document_id), chunk.position),
                "start_offset": chunk.start_offset,
                "end_offset": chunk.end_offset,
            }
            for chunk in chunks
        ]

        async with self._session_factory() as session:
            async with session.begin():
                await DocumentStatusUpdater(session).mark_ready(
                    document_id, chunk_count=len(chunks), title=title
                )
                previous = await chunk_crud.get_by_document_id(session, document_id)
                stale_keys = sorted({chunk.vector_key for chunk in previous} - new_keys)

                await chunk_crud.delete_by_document_id(session, document_id)
                await chunk_crud.bulk_create(session, rows)
                await self._vector_task.upload(records, str(document_id))
                if stale_keys:
                    await self._delete_stale_vectors(document_id, stale_keys)

    async def _delete_stale_vectors(self, document_id: UUID, stale_keys: list[str]) -> None:
        try:
            await self._vector_task.delete_keys(stale_keys)
        except VectorStoreError as e:
            # Document stays READY; the stale keys are outside the new position range
            logger.warning(
                f"{__name__}:_delete_stale_vectors - Failed to delete stale vectors",
                extra={"document_id": str(document_id), "stale_keys": len(stale_keys), "error_msg": e.message},
            )

    async def _mark_failed(self, document_id: UUID, message: str) -> DocumentStatus | None:
        async with self._session_factory() as session:
            async with session.begin():
                updater = DocumentStatusUpdater(session)
                if await updater.mark_failed(document_id, message):
                    return DocumentStatus.FAILED
                return await document_crud.get_status(session, document_id)

    @staticmethod
    def _result(
        document_id: UUID,
        status: DocumentStatus | None,
        start_time: float,
        error_kind: ErrorKind | None = None,
        error_message: str | None = None,
    ) -> IngestionResult:
        return IngestionResult(
            document_id=str(document_id),
            status=status or DocumentStatus.FAILED,
            error_kind=error_kind,
            error_message=truncate_error(error_message) if error_message else None,
            processing_time_ms=(time.perf_counter() - start_time) * 1000,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_status(self, document_id: UUID) -> DocumentRecord:
        """
        Get a document with its current status.

        Raises:
            DocumentNotFoundError: Document not found
        """
        async with self._session_factory() as session:
            document = await document_crud.get_by_id(session, document_id)
        if document is None:
            raise DocumentNotFoundError(str(document_id))
        return DocumentRecord.from_model(document)

    async def list_documents(
        self,
        owner_id: str,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[DocumentRecord]:
        """List an owner's documents, newest first."""
        async with self._session_factory() as session:
            documents = await document_crud.get_by_owner_id(
                session, owner_id, limit=limit, offset=offset
            )
        return [DocumentRecord.from_model(document) for document in documents]

    # ------------------------------------------------------------------
    # Deletion saga
    # ------------------------------------------------------------------

    async def delete(self, document_id: UUID) -> DeletionResult:
        """
        Delete a document, its chunks and its vectors.

        Steps: mark DELETION_PENDING, delete vectors by document filter,
        then delete the row (chunks cascade) and release the owner's quota
        slot in one transaction. A step that keeps failing leaves the
        document DELETION_PENDING with an error message; calling delete
        again resumes the saga.

        Args:
            document_id: Document UUID

        Returns:
            DeletionResult: deleted=True once both stores are clean

        Raises:
            DocumentNotFoundError: Document not found
        """
        with correlation_scope(str(document_id)):
            async with self._session_factory() as session:
                async with session.begin():
                    await DocumentStatusUpdater(session).mark_deletion_pending(document_id)
                    document = await document_crud.get_by_id(session, document_id)
                    owner_id = document.owner_id

            try:
                await self._vector_task.delete_document(str(document_id))
            except VectorStoreError as e:
                return await self._deletion_stalled(
                    document_id, f"Vector deletion failed: {e.message}"
                )

            try:
                async for attempt in AsyncRetrying(
                    retry=retry_if_exception_type(SQLAlchemyError),
                    stop=stop_after_attempt(self._deletion_attempts),
                    wait=wait_exponential_jitter(
                        initial=self._retry_initial, max=30, jitter=self._retry_initial
                    ),
                    reraise=True,
                ):
                    with attempt:
                        await self._remove_document(document_id, owner_id)
            except SQLAlchemyError as e:
                log_exception_with_context(
                    logger,
                    f"{__name__}:delete - Record deletion failed",
                    e,
                    document_id=str(document_id),
                )
                return await self._deletion_stalled(
                    document_id, f"Record deletion failed: {type(e).__name__}"
                )

            logger.info(
                f"{__name__}:delete - Document deleted",
                extra={"document_id": str(document_id), "owner_id": owner_id},
            )
            return DeletionResult(document_id=str(document_id), deleted=True)

    async def _remove_document(self, document_id: UUID, owner_id: str) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await chunk_crud.delete_by_document_id(session, document_id)
                if await document_crud.delete_by_id(session, document_id):
                    await quota_crud.release(session, owner_id)

    async def _deletion_stalled(self, document_id: UUID, message: str) -> DeletionResult:
        logger.warning(
            f"{__name__}:delete - Deletion left pending",
            extra={"document_id": str(document_id), "error_msg": message},
        )
        async with self._session_factory() as session:
            async with session.begin():
                await DocumentStatusUpdater(session).mark_deletion_pending(
                    document_id, error_message=message
                )
        return DeletionResult(
            document_id=str(document_id),
            deleted=False,
            status=DocumentStatus.DELETION_PENDING,
            error_message=truncate_error(message),
        )

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    async def recover_orphaned(self, older_than: timedelta) -> int:
        """
        Sweep PROCESSING documents untouched for longer than older_than to FAILED.

        Args:
            older_than: Minimum age of the last update

        Returns:
            int: Number of documents swept
        """
        cutoff = utc_now() - older_than
        swept = 0
        async with self._session_factory() as session:
            stale = await document_crud.get_by_status(
                session, DocumentStatus.PROCESSING, updated_before=cutoff
            )
            stale_ids = [document.id for document in stale]

        for document_id in stale_ids:
            async with self._session_factory() as session:
                async with session.begin():
                    if await DocumentStatusUpdater(session).fail_if_stale(document_id, cutoff):
                        swept += 1

        if swept:
            logger.warning(
                f"{__name__}:recover_orphaned - Swept orphaned documents",
                extra={"count": swept, "cutoff": cutoff.isoformat()},
            )
        return swept

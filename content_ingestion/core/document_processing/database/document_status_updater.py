"""
Document status updater.

Guarded lifecycle transitions for documents:
UPLOADING → PROCESSING → READY (or FAILED with error message),
FAILED/READY → PROCESSING on re-ingestion (also orphaned PROCESSING runs past
their staleness cutoff), any → DELETION_PENDING.

Every transition is one conditional UPDATE. Methods use the caller's
session and never commit; the orchestrator owns transaction boundaries.

Dependencies: sqlalchemy, content_ingestion.boundary.db
System role: Sole writer of document status
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from content_ingestion.boundary.db.base import utc_now
from content_ingestion.boundary.db.CRUD import document_crud
from content_ingestion.boundary.db.models.document_model import DocumentStatus
from content_ingestion.core.exceptions import (
    DocumentNotFoundError,
    InvalidStatusTransitionError,
)

logger = logging.getLogger(__name__)

MAX_ERROR_MESSAGE_LENGTH = 2000

# Allowed source statuses per target status
ALLOWED_SOURCES: dict[DocumentStatus, set[DocumentStatus]] = {
    DocumentStatus.PROCESSING: {DocumentStatus.UPLOADING},
    DocumentStatus.READY: {DocumentStatus.PROCESSING},
    DocumentStatus.FAILED: {DocumentStatus.UPLOADING, DocumentStatus.PROCESSING},
}

# Re-ingestion may restart finished documents
REINGEST_SOURCES = {DocumentStatus.FAILED, DocumentStatus.READY}


def truncate_error(message: str) -> str:
    """Truncate an error message to fit the error_message column."""
    if len(message) > MAX_ERROR_MESSAGE_LENGTH:
        return message[:MAX_ERROR_MESSAGE_LENGTH]
    return message


class DocumentStatusUpdater:
    """Update document status inside the caller's transaction."""

    def __init__(self, db_session: AsyncSession) -> None:
        """
        Initialize with database session.

        Args:
            db_session: Async session whose transaction the updates join
        """
        self.db = db_session

    async def _transition(
        self,
        document_id: UUID,
        target: DocumentStatus,
        sources: set[DocumentStatus] | None,
        **values,
    ) -> None:
        updated = await document_crud.transition_status(
            self.db, document_id, target, sources, **values
        )
        if updated:
            logger.info(
                f"{__name__}:_transition - Document marked as {target.value}",
                extra={"document_id": str(document_id)},
            )
            return

        current = await document_crud.get_status(self.db, document_id)
        if current is None:
            raise DocumentNotFoundError(str(document_id))
        raise InvalidStatusTransitionError(str(document_id), current.value, target.value)

    async def mark_processing(
        self,
        document_id: UUID,
        reingest: bool = False,
        stale_before: datetime | None = None,
    ) -> None:
        """
        Mark document as PROCESSING.

        A PROCESSING document updated recently belongs to a live run and is
        never taken over.

        Args:
            document_id: Document UUID
            reingest: Allow restarting FAILED or READY documents
            stale_before: With reingest, also take over PROCESSING runs untouched since this time

        Raises:
            DocumentNotFoundError: Document not found
            InvalidStatusTransitionError: Document is in another status or still being processed
        """
        if reingest and stale_before is not None:
            reclaimed = await document_crud.transition_status(
                self.db,
                document_id,
                DocumentStatus.PROCESSING,
                {DocumentStatus.PROCESSING},
                updated_before=stale_before,
                error_message=None,
            )
            if reclaimed:
                logger.warning(
                    f"{__name__}:mark_processing - Took over orphaned run",
                    extra={"document_id": str(document_id)},
                )
                return

        sources = REINGEST_SOURCES if reingest else ALLOWED_SOURCES[DocumentStatus.PROCESSING]
        await self._transition(
            document_id,
            DocumentStatus.PROCESSING,
            sources,
            error_message=None,
        )

    async def mark_ready(self, document_id: UUID, chunk_count: int, title: str) -> None:
        """
        Mark document as READY.

        Args:
            document_id: Document UUID
            chunk_count: Number of chunks written
            title: Derived display title

        Raises:
            DocumentNotFoundError: Document not found
            InvalidStatusTransitionError: Document is no longer PROCESSING
        """
        await self._transition(
            document_id,
            DocumentStatus.READY,
            ALLOWED_SOURCES[DocumentStatus.READY],
            chunk_count=chunk_count,
            title=title,
            error_message=None,
            processed_at=utc_now(),
        )

    async def mark_failed(self, document_id: UUID, error_message: str) -> bool:
        """
        Mark document as FAILED with error details.

        A document that already left UPLOADING/PROCESSING (for example one
        that entered DELETION_PENDING) keeps its status.

        Args:
            document_id: Document UUID
            error_message: Human-readable error description

        Returns:
            bool: True if the document was marked FAILED
        """
        updated = await document_crud.transition_status(
            self.db,
            document_id,
            DocumentStatus.FAILED,
            ALLOWED_SOURCES[DocumentStatus.FAILED],
            error_message=truncate_error(error_message),
        )
        if updated:
            logger.info(
                f"{__name__}:mark_failed - Document marked as FAILED",
                extra={"document_id": str(document_id)},
            )
        else:
            logger.warning(
                f"{__name__}:mark_failed - Document not in a failable status",
                extra={"document_id": str(document_id)},
            )
        return updated

    async def mark_deletion_pending(self, document_id: UUID, error_message: str | None = None) -> None:
        """
        Mark document as DELETION_PENDING from any status.

        Args:
            document_id: Document UUID
            error_message: Reason a previous deletion attempt stopped

        Raises:
            DocumentNotFoundError: Document not found
        """
        values = {}
        if error_message is not None:
            values["error_message"] = truncate_error(error_message)
        await self._transition(document_id, DocumentStatus.DELETION_PENDING, None, **values)

    async def fail_if_stale(self, document_id: UUID, updated_before: datetime) -> bool:
        """
        Mark an orphaned PROCESSING document as FAILED.

        Args:
            document_id: Document UUID
            updated_before: Only documents untouched since before this time

        Returns:
            bool: True if the document was swept
        """
        return await document_crud.transition_status(
            self.db,
            document_id,
            DocumentStatus.FAILED,
            {DocumentStatus.PROCESSING},
            updated_before=updated_before,
            error_message="Processing was interrupted; re-ingest the document to retry",
        )

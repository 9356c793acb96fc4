"""
Document CRUD operations.

Provides Create, Read, Update, Delete operations for DocumentModel
with owner filtering and guarded status transitions.

Dependencies: sqlalchemy, content_ingestion.boundary.db.models
System role: Document persistence operations
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from content_ingestion.boundary.db.CRUD.base_crud import BaseCRUD
from content_ingestion.boundary.db.models.document_model import DocumentModel, DocumentStatus


class DocumentCRUD(BaseCRUD[DocumentModel]):
    """
    CRUD operations for DocumentModel.

    Extends BaseCRUD with owner queries and conditional status updates.
    """

    def __init__(self) -> None:
        """Initialize DocumentCRUD with DocumentModel."""
        super().__init__(DocumentModel)

    async def get_by_owner_id(
        self,
        session: AsyncSession,
        owner_id: str,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[DocumentModel]:
        """
        Retrieve all documents for an owner, newest first.

        Args:
            session: Async database session
            owner_id: Owner identifier
            limit: Maximum number of documents to return
            offset: Number of documents to skip

        Returns:
            Sequence of DocumentModels belonging to the owner
        """
        stmt = (
            select(DocumentModel)
            .where(DocumentModel.owner_id == owner_id)
            .order_by(DocumentModel.created_at.desc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_by_status(
        self,
        session: AsyncSession,
        status: DocumentStatus,
        updated_before: datetime | None = None,
        limit: int | None = None,
    ) -> Sequence[DocumentModel]:
        """
        Retrieve documents by processing status.

        Args:
            session: Async database session
            status: Document processing status to filter by
            updated_before: Only documents last updated before this time
            limit: Maximum number of documents to return

        Returns:
            Sequence of DocumentModels with matching status
        """
        stmt = select(DocumentModel).where(DocumentModel.status == status)
        if updated_before is not None:
            stmt = stmt.where(DocumentModel.updated_at < updated_before)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def transition_status(
        self,
        session: AsyncSession,
        id: UUID,
        to_status: DocumentStatus,
        from_statuses: Iterable[DocumentStatus] | None = None,
        updated_before: datetime | None = None,
        **values: Any,
    ) -> bool:
        """
        Move a document to a new status if it is currently in an allowed one.

        Issued as a single conditional UPDATE so concurrent writers cannot
        interleave a read and a write.

        Args:
            session: Async database session
            id: Document UUID
            to_status: Target status
            from_statuses: Allowed current statuses (None allows any)
            updated_before: Additionally require updated_at before this time
            **values: Extra columns to set alongside the status

        Returns:
            True if the row was updated, False if missing or in another status
        """
        stmt = update(DocumentModel).where(DocumentModel.id == id)
        if from_statuses is not None:
            stmt = stmt.where(DocumentModel.status.in_(list(from_statuses)))
        if updated_before is not None:
            stmt = stmt.where(DocumentModel.updated_at < updated_before)
        stmt = stmt.values(status=to_status, **values).execution_options(
            synchronize_session=False
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    async def get_status(self, session: AsyncSession, id: UUID) -> DocumentStatus | None:
        """
        Read only the status column of a document.

        Args:
            session: Async database session
            id: Document UUID

        Returns:
            Current status, or None when the document does not exist
        """
        stmt = select(DocumentModel.status).where(DocumentModel.id == id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()


document_crud = DocumentCRUD()

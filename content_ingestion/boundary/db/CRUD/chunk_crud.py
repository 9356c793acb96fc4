"""
Chunk CRUD operations.

Dependencies: sqlalchemy, content_ingestion.boundary.db.models
System role: Chunk row persistence
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from content_ingestion.boundary.db.CRUD.base_crud import BaseCRUD
from content_ingestion.boundary.db.models.chunk_model import ChunkModel


class ChunkCRUD(BaseCRUD[ChunkModel]):
    """CRUD operations for ChunkModel, scoped by document."""

    def __init__(self) -> None:
        """Initialize ChunkCRUD with ChunkModel."""
        super().__init__(ChunkModel)

    async def get_by_document_id(
        self,
        session: AsyncSession,
        document_id: UUID,
    ) -> Sequence[ChunkModel]:
        """
        Retrieve the chunks of a document ordered by position.

        Args:
            session: Async database session
            document_id: Owning document UUID

        Returns:
            Sequence of ChunkModels
        """
        stmt = (
            select(ChunkModel)
            .where(ChunkModel.document_id == document_id)
            .order_by(ChunkModel.position)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def count_by_document_id(self, session: AsyncSession, document_id: UUID) -> int:
        """Count the chunk rows of a document."""
        stmt = select(func.count()).select_from(ChunkModel).where(
            ChunkModel.document_id == document_id
        )
        result = await session.execute(stmt)
        return result.scalar_one()

    async def delete_by_document_id(self, session: AsyncSession, document_id: UUID) -> int:
        """
        Delete every chunk row of a document.

        Args:
            session: Async database session
            document_id: Owning document UUID

        Returns:
            int: Number of rows deleted
        """
        stmt = delete(ChunkModel).where(ChunkModel.document_id == document_id)
        result = await session.execute(stmt)
        return result.rowcount

    async def bulk_create(self, session: AsyncSession, rows: list[dict]) -> int:
        """
        Insert chunk rows in one statement.

        Args:
            session: Async database session
            rows: Column dictionaries (document_id, content, position, ...)

        Returns:
            int: Number of rows inserted
        """
        if not rows:
            return 0
        await session.execute(insert(ChunkModel), rows)
        await session.flush()
        return len(rows)


chunk_crud = ChunkCRUD()

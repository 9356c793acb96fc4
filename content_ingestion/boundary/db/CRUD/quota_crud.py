"""
Owner quota CRUD operations.

Reservation is an insert-if-missing followed by a conditional increment;
the UPDATE's row count tells whether the reservation succeeded. Concurrent
reservations serialize on the row lock (PostgreSQL) or the database write
lock (SQLite), so at most ``limit`` of them succeed.

Dependencies: sqlalchemy
System role: Per-owner document limit enforcement
"""

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from content_ingestion.boundary.db.base import utc_now
from content_ingestion.boundary.db.models.quota_model import OwnerQuotaModel


class QuotaCRUD:
    """Atomic reservation and release of per-owner document slots."""

    def __init__(self) -> None:
        self.model = OwnerQuotaModel

    async def ensure_row(self, session: AsyncSession, owner_id: str) -> None:
        """
        Insert a zero counter for the owner unless one already exists.

        Args:
            session: Async database session
            owner_id: Owner identifier
        """
        dialect = session.bind.dialect.name
        values = {"owner_id": owner_id, "document_count": 0, "updated_at": utc_now()}
        if dialect == "postgresql":
            stmt = postgresql.insert(OwnerQuotaModel).values(**values)
        elif dialect == "sqlite":
            stmt = sqlite.insert(OwnerQuotaModel).values(**values)
        else:
            raise NotImplementedError(f"Unsupported database dialect: {dialect}")
        await session.execute(stmt.on_conflict_do_nothing(index_elements=["owner_id"]))

    async def try_reserve(self, session: AsyncSession, owner_id: str, limit: int) -> bool:
        """
        Reserve one document slot if the owner is below the limit.

        Args:
            session: Async database session
            owner_id: Owner identifier
            limit: Maximum documents per owner

        Returns:
            True if a slot was reserved, False if the owner is at the limit
        """
        await self.ensure_row(session, owner_id)
        stmt = (
            update(OwnerQuotaModel)
            .where(
                OwnerQuotaModel.owner_id == owner_id,
                OwnerQuotaModel.document_count < limit,
            )
            .values(document_count=OwnerQuotaModel.document_count + 1)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    async def release(self, session: AsyncSession, owner_id: str) -> bool:
        """
        Release one document slot, never going below zero.

        Args:
            session: Async database session
            owner_id: Owner identifier

        Returns:
            True if a slot was released
        """
        stmt = (
            update(OwnerQuotaModel)
            .where(
                OwnerQuotaModel.owner_id == owner_id,
                OwnerQuotaModel.document_count > 0,
            )
            .values(document_count=OwnerQuotaModel.document_count - 1)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    async def get_count(self, session: AsyncSession, owner_id: str) -> int:
        """Return the owner's current document count (0 when unknown)."""
        stmt = select(OwnerQuotaModel.document_count).where(
            OwnerQuotaModel.owner_id == owner_id
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() or 0


quota_crud = QuotaCRUD()

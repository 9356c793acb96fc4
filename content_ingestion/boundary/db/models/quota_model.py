"""
Owner quota ORM model.

Counts the documents each owner currently holds. Reservations and releases
are single conditional UPDATE statements against this row.

Dependencies: sqlalchemy, content_ingestion.boundary.db.base
System role: Per-owner document limit enforcement
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from content_ingestion.boundary.db.base import Base, utc_now


class OwnerQuotaModel(Base):
    """
    Owner quota ORM model.

    Attributes:
        owner_id: Owner identifier (primary key)
        document_count: Documents currently held by the owner
        updated_at: Last reservation or release (UTC)
    """

    __tablename__ = "owner_quotas"

    owner_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    document_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )

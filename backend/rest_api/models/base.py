"""
Base class and AuditMixin for all SQLAlchemy ORM models.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only auto-increments INTEGER PRIMARY KEY columns
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class AuditMixin:
    """
    Mixin providing soft delete and audit trail fields for all models.

    Fields added:
    - is_active: Soft delete flag (False = archived, True = active)
    - created_at, updated_at, deleted_at: Audit timestamps
    - created_by_id/username, updated_by_id/username, deleted_by_id/username

    Rows are never hard-deleted; ``soft_delete`` archives them.
    """

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=utcnow, nullable=True
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # No FK to app_user: the audit columns live on app_user itself too
    created_by_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    created_by_username: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    updated_by_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    updated_by_username: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    deleted_by_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    deleted_by_username: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def soft_delete(self, user_id: int | None, username: str | None) -> None:
        """Archive the row with an audit trail."""
        self.is_active = False
        self.deleted_at = utcnow()
        self.deleted_by_id = user_id
        self.deleted_by_username = username

    def set_created_by(self, user_id: int | None, username: str | None) -> None:
        self.created_by_id = user_id
        self.created_by_username = username

    def set_updated_by(self, user_id: int | None, username: str | None) -> None:
        self.updated_by_id = user_id
        self.updated_by_username = username
        self.updated_at = utcnow()

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        id_val = getattr(self, "id", None)
        active = "active" if self.is_active else "archived"
        return f"<{class_name}(id={id_val}, {active})>"

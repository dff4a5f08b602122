"""
User model for staff, admins and print agents.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, BigIntPK

if TYPE_CHECKING:
    from .theater import Theater


class User(AuditMixin, Base):
    """
    A login. SUPER_ADMIN users have no theater; THEATER_ADMIN and POS_USER
    users are scoped to exactly one.
    """

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False, index=True)
    password: Mapped[str] = mapped_column(Text, nullable=False)  # bcrypt hash
    role: Mapped[str] = mapped_column(Text, nullable=False)  # SUPER_ADMIN, THEATER_ADMIN, POS_USER
    theater_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("theater.id"), nullable=True, index=True
    )
    display_name: Mapped[Optional[str]] = mapped_column(Text)

    theater: Mapped[Optional["Theater"]] = relationship(back_populates="users")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"

"""
Theater Domain Service.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.config.constants import Roles
from rest_api.models import Theater


class TheaterService:
    """Theaters visible to a caller."""

    def __init__(self, db: Session):
        self._db = db

    def list_visible(self, ctx: dict[str, Any]) -> list[Theater]:
        """All active theaters for super admins, otherwise the caller's own."""
        stmt = select(Theater).where(Theater.is_active.is_(True)).order_by(Theater.id)
        if ctx.get("role") != Roles.SUPER_ADMIN:
            stmt = stmt.where(Theater.id == ctx.get("theater_id"))
        return list(self._db.scalars(stmt).all())

"""
Theater router.
"""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context
from shared.utils.schemas import TheaterOutput
from rest_api.services.domain import TheaterService

router = APIRouter(prefix="/api/theaters", tags=["theaters"])


@router.get("")
def list_theaters(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> dict[str, Any]:
    """Theaters visible to the caller: all of them for super admins."""
    theaters = TheaterService(db).list_visible(ctx)
    return {
        "success": True,
        "data": [TheaterOutput.model_validate(t).model_dump(by_alias=True) for t in theaters],
    }

"""
Settings router: per-theater POS printer configuration.

The theater comes from the token. Super admins have no theater of their own
and must pass ``?theaterId=``.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from shared.config.constants import MANAGEMENT_ROLES, Roles
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context, require_roles, require_theater
from shared.utils.schemas import PrinterConfigUpdate
from rest_api.services.domain import PrinterSettingsService

router = APIRouter(prefix="/api/settings", tags=["settings"])


def resolve_theater_id(ctx: dict[str, Any], theater_id: int | None) -> int:
    """Theater of the token, or the explicit one for super admins."""
    if theater_id is not None:
        require_theater(ctx, theater_id)
        return theater_id
    if ctx.get("theater_id") is not None:
        return ctx["theater_id"]
    if ctx.get("role") == Roles.SUPER_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Theater ID is required to access POS printer settings",
        )
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Token is not scoped to a theater",
    )


@router.get("/pos-printer")
def get_pos_printer(
    theater_id: int | None = Query(default=None, alias="theaterId"),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> dict[str, Any]:
    """Printer configuration for the caller's theater (defaults when unset)."""
    resolved = resolve_theater_id(ctx, theater_id)
    config = PrinterSettingsService(db).get_config(resolved)
    return {
        "success": True,
        "data": {"theaterId": resolved, "config": config.model_dump(by_alias=True)},
    }


@router.post("/pos-printer")
def save_pos_printer(
    body: PrinterConfigUpdate,
    theater_id: int | None = Query(default=None, alias="theaterId"),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> dict[str, Any]:
    """Save the caller's printer configuration (theater admins only)."""
    require_roles(ctx, MANAGEMENT_ROLES)
    resolved = resolve_theater_id(ctx, theater_id)
    config = PrinterSettingsService(db).save_config(resolved, body, actor=ctx)
    return {
        "success": True,
        "message": "POS printer settings saved successfully",
        "data": {"theaterId": resolved, "config": config.model_dump(by_alias=True)},
    }

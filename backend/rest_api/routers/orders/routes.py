"""
Order router.

Thin controller over OrderService and PaymentService; every route is scoped
to the theater in the path and checked against the caller's token.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from shared.config.constants import Limits, MANAGEMENT_ROLES
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context, require_roles, require_theater
from shared.utils.schemas import OrderCreateRequest, PaymentVerifyRequest
from rest_api.services.domain import OrderService, PaymentService

router = APIRouter(prefix="/api/orders/theater", tags=["orders"])


@router.post("/{theater_id}", status_code=status.HTTP_201_CREATED)
def create_order(
    theater_id: int,
    body: OrderCreateRequest,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> dict[str, Any]:
    """Create an order. Counter-settled cash/cod orders are printed immediately."""
    require_theater(ctx, theater_id)
    order = OrderService(db).create_order(theater_id, body, actor=ctx)
    return {"success": True, "data": OrderService.to_json(order)}


@router.get("/{theater_id}")
def list_orders(
    theater_id: int,
    limit: int = Query(default=50, ge=1, le=Limits.MAX_ORDERS_PAGE),
    include_archived: bool = Query(default=False, alias="includeArchived"),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> dict[str, Any]:
    require_theater(ctx, theater_id)
    orders = OrderService(db).list_orders(theater_id, limit=limit, include_archived=include_archived)
    return {"success": True, "data": [OrderService.to_json(o) for o in orders]}


@router.get("/{theater_id}/{order_id}")
def get_order(
    theater_id: int,
    order_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> dict[str, Any]:
    """Current state of one order. Print agents fetch receipts from here."""
    require_theater(ctx, theater_id)
    order = OrderService(db).get_order(theater_id, order_id)
    return {"success": True, "data": OrderService.to_json(order)}


@router.post("/{theater_id}/{order_id}/payment")
def verify_payment(
    theater_id: int,
    order_id: int,
    body: PaymentVerifyRequest,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> dict[str, Any]:
    """Record the verified payment outcome. completed/paid triggers a print."""
    require_theater(ctx, theater_id)
    order, changed = PaymentService(db).verify_payment(
        theater_id, order_id, body.status, body.transaction_id, actor=ctx
    )
    return {"success": True, "changed": changed, "data": OrderService.to_json(order)}


@router.post("/{theater_id}/{order_id}/archive")
def archive_order(
    theater_id: int,
    order_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> dict[str, Any]:
    require_roles(ctx, MANAGEMENT_ROLES)
    require_theater(ctx, theater_id)
    order = OrderService(db).archive_order(theater_id, order_id, actor=ctx)
    return {"success": True, "data": OrderService.to_json(order)}

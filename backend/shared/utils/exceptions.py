"""
Centralized HTTP exceptions for consistent error handling.

Usage:
    from shared.utils.exceptions import NotFoundError, ValidationError

    raise NotFoundError("Order", order_id, theater_id=theater_id)
    raise ValidationError("Order must contain at least one item")
"""

from typing import Any

from fastapi import HTTPException, status

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions should inherit from this class
    to ensure consistent logging and response format.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Order", 123)
        raise NotFoundError("Theater", theater_id)
    """

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} with ID {entity_id} not found"
        else:
            detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


class OrderNotFoundError(NotFoundError):
    """Order not found within the theater."""

    def __init__(self, order_id: int | str | None = None, **log_context: Any):
        super().__init__("Order", order_id, **log_context)


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Usage:
        raise ValidationError("Quantity must be positive", field="quantity", value=-1)
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            **log_context,
        )


class InvalidTransitionError(ValidationError):
    """Invalid status transition."""

    def __init__(self, entity: str, from_status: str, to_status: str, **log_context: Any):
        detail = f"Invalid transition from '{from_status}' to '{to_status}' for {entity}"
        super().__init__(
            detail, entity=entity, from_status=from_status, to_status=to_status, **log_context
        )

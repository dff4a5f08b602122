"""
Utilities module: Exceptions, schemas.
"""

from shared.utils.exceptions import (
    AppException,
    NotFoundError,
    OrderNotFoundError,
    ValidationError,
    InvalidTransitionError,
)
from shared.utils.schemas import CamelModel

__all__ = [
    # exceptions
    "AppException",
    "NotFoundError",
    "OrderNotFoundError",
    "ValidationError",
    "InvalidTransitionError",
    # schemas
    "CamelModel",
]

"""
Order routers - /api/orders/theater/{theater_id}/*
"""

from .routes import router

__all__ = ["router"]

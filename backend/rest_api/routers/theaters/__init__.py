"""
Theater routers - /api/theaters
"""

from .routes import router

__all__ = ["router"]

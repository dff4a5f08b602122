"""
Settings routers - /api/settings/*
"""

from .routes import router

__all__ = ["router"]

"""
Database configuration and session management.
Uses SQLAlchemy 2.0 synchronous sessions; FastAPI runs sync dependencies
in its threadpool.
"""

import os
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from shared.config.settings import DATABASE_URL


def _calculate_pool_size() -> int:
    """(2 * CPU cores) + 1, capped at 20."""
    cores = os.cpu_count() or 4
    return min(cores * 2 + 1, 20)


def build_engine(url: str) -> Engine:
    """
    Create the engine for ``url``.

    PostgreSQL gets a sized connection pool with timeouts. SQLite (used for
    local demos and the test suite) gets a single shared connection so an
    in-memory database survives across sessions.
    """
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    kwargs: dict[str, Any] = {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_size": _calculate_pool_size(),
        "max_overflow": 15,
        "pool_timeout": 30,  # Wait max 30s for connection from pool
        "pool_recycle": 1800,  # Recycle connections after 30 minutes
        "connect_args": {"connect_timeout": 10},
        "echo": False,
    }
    return create_engine(url, **kwargs)


engine = build_engine(DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Usage:
        @router.get("/orders")
        def list_orders(db: Session = Depends(get_db)):
            ...

    The session is automatically closed after the request completes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database sessions outside of FastAPI
    (startup seeding, the status endpoint of the stream gateway).
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def safe_commit(db: Session) -> None:
    """
    Commit with automatic rollback on failure.

    Raises the original exception after rolling back.
    """
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

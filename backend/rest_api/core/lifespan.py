"""
Application lifespan handler.
Manages startup and shutdown events for the FastAPI application.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from shared.config.logging import rest_api_logger as logger, setup_logging
from shared.config.settings import settings
from shared.infrastructure.db import engine, get_db_context
from pos_stream.event_bus import get_event_bus
from rest_api.models import Base
from rest_api.seed import seed


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Runs on startup and shutdown.
    """
    setup_logging()

    # Refuse to start with insecure production settings
    secret_errors = settings.validate_production_secrets()
    if secret_errors:
        for error in secret_errors:
            logger.error("Configuration error", error=error)
        if settings.environment == "production":
            raise RuntimeError(
                f"Production configuration errors: {'; '.join(secret_errors)}. "
                "Server will not start with insecure configuration."
            )
        logger.warning("Running with insecure defaults (acceptable for development only)")

    logger.info("Starting REST API", port=settings.rest_api_port, env=settings.environment)

    if settings.db_auto_create:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created/verified")

    if settings.seed_demo_data:
        with get_db_context() as db:
            seed(db)

    yield

    logger.info("Shutting down REST API")
    # Ends open SSE responses so uvicorn can finish its graceful shutdown
    get_event_bus().close_all()

"""
REST API main application.
Entry point for the FastAPI server: order API, printer settings and the POS
event stream consumed by on-premise print agents.
"""

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from shared.config.settings import settings
from shared.infrastructure.correlation import CorrelationIdMiddleware
from shared.security.rate_limit import limiter, rate_limit_exceeded_handler
from rest_api.core.cors import configure_cors
from rest_api.core.lifespan import lifespan
from rest_api.core.middlewares import register_middlewares
from rest_api.routers.auth import router as auth_router
from rest_api.routers.orders import router as orders_router
from rest_api.routers.public import health_router
from rest_api.routers.settings import router as settings_router
from rest_api.routers.theaters import router as theaters_router
from pos_stream.router import router as pos_stream_router


app = FastAPI(
    title="Theater POS REST API",
    description="Concession orders, payments and POS auto-print event stream",
    version="0.3.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

register_middlewares(app)
configure_cors(app)
# Outermost, so every log line of a request carries its id
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(theaters_router)
app.include_router(orders_router)
app.include_router(settings_router)
app.include_router(pos_stream_router)


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rest_api.main:app",
        host="0.0.0.0",
        port=settings.rest_api_port,
        reload=settings.debug,
    )

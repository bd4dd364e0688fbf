"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from scheme_tracker.api.middleware import RequestIDMiddleware, MetricsMiddleware
from scheme_tracker.api.v1 import groups, payments, schemes
from scheme_tracker.infrastructure.database.session import init_db
from scheme_tracker.infrastructure.observability.logging import setup_logging
from scheme_tracker.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Scheme Tracker",
        description="Monthly payment scheme tracking service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(schemes.router, prefix="/v1", tags=["schemes"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])
    app.include_router(groups.router, prefix="/v1", tags=["groups"])

    return app


app = create_app()

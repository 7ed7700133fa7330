"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from pg_gateway.api.middleware import MetricsMiddleware, RequestIDMiddleware
from pg_gateway.api.v1 import payments
from pg_gateway.config import settings
from pg_gateway.infrastructure.database.seed import seed_demo_data
from pg_gateway.infrastructure.database.session import SessionLocal, create_schema
from pg_gateway.infrastructure.observability.logging import setup_logging

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.seed_demo_data:
        create_schema()
        db = SessionLocal()
        try:
            seed_demo_data(db)
        finally:
            db.close()
    logging.info("Payment gateway started", extra={"fallback_enabled": settings.approval_fallback_enabled})
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="PG Payment Gateway",
        description="Card payment approval, fee settlement and payment history",
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
    app.include_router(payments.router, prefix="/v1", tags=["payments"])

    return app


app = create_app()

"""
MessengerPulse - FastAPI Application Entry Point.

This module provides the FastAPI application factory with middleware,
routes, exception handlers and lifecycle management.
"""

import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from messenger_pulse.api import api_router
from messenger_pulse.api.error_handlers import setup_exception_handlers
from messenger_pulse.config.constants import (
    API_PREFIX,
    SERVICE_DESCRIPTION,
    SERVICE_NAME,
    SERVICE_VERSION,
)
from messenger_pulse.config.settings import Settings, get_settings
from messenger_pulse.core.ai.followup import FollowUpGenerator
from messenger_pulse.core.graph.client import GraphClient
from messenger_pulse.services.credential_store import CredentialStore
from messenger_pulse.services.inbox_service import InboxService
from messenger_pulse.utils.logger import get_logger, setup_logging
from messenger_pulse.utils.metrics import MetricsCollector

logger = get_logger(__name__)


def build_inbox_service(settings: Settings, metrics: MetricsCollector) -> InboxService:
    """Wire the Graph client, credential store and AI drafting together."""
    return InboxService(
        graph_client=GraphClient(settings, metrics=metrics),
        credential_store=CredentialStore(settings.CREDENTIAL_STORE_PATH),
        follow_up_generator=FollowUpGenerator(
            api_key=settings.GEMINI_API_KEY,
            model_name=settings.GEMINI_MODEL,
            metrics=metrics
        ),
        overdue_threshold_hours=settings.OVERDUE_THRESHOLD_HOURS,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    settings: Settings = app.state.settings
    logger.info("Starting MessengerPulse...", version=app.version, environment=settings.ENVIRONMENT.value)

    if getattr(app.state, "inbox_service", None) is None:
        app.state.inbox_service = build_inbox_service(settings, app.state.metrics)

    inbox: InboxService = app.state.inbox_service
    restored = await inbox.restore()
    logger.info("MessengerPulse startup completed", session_restored=restored is not None)

    try:
        yield
    finally:
        logger.info("Shutting down MessengerPulse...")
        await inbox.graph_client.aclose()
        logger.info("MessengerPulse shutdown completed")


def create_app(
        settings: Optional[Settings] = None,
        inbox_service: Optional[InboxService] = None,
        metrics: Optional[MetricsCollector] = None
) -> FastAPI:
    """Create and configure the FastAPI application instance."""
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL.value, settings.LOG_FORMAT)

    app = FastAPI(
        title="MessengerPulse API",
        description=SERVICE_DESCRIPTION,
        version=SERVICE_VERSION,
        openapi_url=f"{API_PREFIX}/openapi.json",
        docs_url=f"{API_PREFIX}/docs",
        redoc_url=f"{API_PREFIX}/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.metrics = metrics or MetricsCollector()
    app.state.inbox_service = inbox_service

    setup_middleware(app, settings)
    setup_exception_handlers(app)
    setup_routes(app, settings)

    return app


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure application middleware."""

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID", "Accept"],
        expose_headers=["X-Request-ID", "X-Process-Time"],
    )

    @app.middleware("http")
    async def add_request_id_middleware(request: Request, call_next):
        """Add unique request ID to all requests."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add processing time header to responses."""
        start_time = time.time()
        response = await call_next(request)
        response.headers["X-Process-Time"] = str(round((time.time() - start_time) * 1000, 2))
        return response


def setup_routes(app: FastAPI, settings: Settings) -> None:
    """Setup application routes and endpoints."""

    app.include_router(api_router)

    @app.get("/health")
    async def health_check():
        """Basic health check endpoint."""
        inbox = app.state.inbox_service
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": app.version,
            "authenticated": bool(inbox and inbox.is_authenticated),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    if settings.METRICS_ENABLED:
        @app.get("/metrics")
        async def prometheus_metrics():
            """Prometheus metrics endpoint."""
            payload, content_type = app.state.metrics.render()
            return Response(payload, media_type=content_type)


def run() -> None:
    """Console entry point."""
    settings = get_settings()
    uvicorn.run(
        "messenger_pulse.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_config=None,
    )


if __name__ == "__main__":
    run()

"""FastAPI application factory.

Creates the app with logging middleware, metrics middleware, CORS, Sentry,
lifespan events for database initialization, and the v1 API router.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import Response

from src.dealboard.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.dealboard.api.v1.router import router as v1_router
from src.dealboard.checklists.repository import ChecklistRepository
from src.dealboard.checklists.service import ChecklistService
from src.dealboard.config import get_settings
from src.dealboard.core.database import close_db, get_session_factory, init_db
from src.dealboard.core.monitoring import MetricsMiddleware, get_metrics_response, init_sentry
from src.dealboard.deals.pipeline import DealPipeline
from src.dealboard.deals.repository import DealRepository
from src.dealboard.parties.repository import BuyingPartyRepository

log = structlog.get_logger(__name__)


def attach_services(app: FastAPI, session_factory) -> None:
    """Build repositories and services on ``session_factory`` and put them on app.state."""
    settings = get_settings()
    deal_repository = DealRepository(session_factory=session_factory)
    app.state.deal_repository = deal_repository
    app.state.deal_pipeline = DealPipeline(
        deal_repository,
        valuation_marker=settings.VALUATION_DOCUMENT_MARKER,
    )
    app.state.party_repository = BuyingPartyRepository(session_factory=session_factory)
    app.state.checklist_service = ChecklistService(
        ChecklistRepository(session_factory=session_factory)
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: init DB and Sentry on startup, close on shutdown."""
    settings = get_settings()
    configure_structlog()
    await init_db()

    if settings.SENTRY_DSN:
        init_sentry(dsn=settings.SENTRY_DSN, environment=settings.ENVIRONMENT.value)

    attach_services(app, get_session_factory())
    log.info("app.started", environment=settings.ENVIRONMENT.value)

    yield

    await close_db()
    log.info("app.stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Dealboard API",
        version="0.1.0",
        description="Deal pipeline and buyer matching for business brokers",
        lifespan=lifespan,
    )

    # Middleware is added in reverse order (last added = outermost)

    if settings.CORS_ALLOWED_ORIGINS == "*":
        origins = ["*"]
    else:
        origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(LoggingMiddleware)

    # Outermost, so every request is counted
    app.add_middleware(MetricsMiddleware)

    app.include_router(v1_router)

    # Prometheus metrics endpoint (infrastructure route, outside v1 router)
    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    return app


# Module-level app for uvicorn
app = create_app()

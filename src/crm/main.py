"""FastAPI application factory.

Creates the app with logging and metrics middleware, CORS, lifespan
construction of the record store and engines, and the v1 API router.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import Response

from src.crm.admin.repository import InMemoryUserRepository
from src.crm.admin.service import UserDirectory, build_system_admin
from src.crm.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.crm.api.v1.router import router as v1_router
from src.crm.assistant.assistant import AssistantSessionStore, CRMAssistant
from src.crm.config import Settings, get_settings
from src.crm.monitoring import MetricsMiddleware, get_metrics_response
from src.crm.recommendations.engine import RecommendationEngine
from src.crm.recommendations.notifications import NotificationFeed
from src.crm.records.repository import InMemoryCRMRepository
from src.crm.records.seed import build_demo_repository
from src.crm.search.engine import RelevanceSearchEngine


def init_services(app: FastAPI, settings: Settings) -> None:
    """Build the record store, engines and user directory onto app.state."""
    log = structlog.get_logger(__name__)

    repository = build_demo_repository() if settings.SEED_DEMO_DATA else InMemoryCRMRepository()
    app.state.crm_repository = repository

    engine = RecommendationEngine(limit=settings.RECOMMENDATION_LIMIT)
    app.state.recommendation_engine = engine
    app.state.notification_feed = NotificationFeed(engine, ai_limit=settings.NOTIFICATION_AI_LIMIT)

    search_engine = RelevanceSearchEngine(limit=settings.SEARCH_RESULT_LIMIT)
    app.state.search_engine = search_engine
    app.state.assistant = CRMAssistant(search_engine)
    app.state.assistant_sessions = AssistantSessionStore(
        max_sessions=settings.ASSISTANT_MAX_SESSIONS,
        ttl_seconds=settings.ASSISTANT_SESSION_TTL_SECONDS,
    )

    users = InMemoryUserRepository(
        [build_system_admin(settings.SYSTEM_ADMIN_EMAIL, settings.SYSTEM_ADMIN_NAME)]
    )
    app.state.user_directory = UserDirectory(users, settings.SYSTEM_ADMIN_EMAIL)

    log.info(
        "services_initialized",
        seeded=settings.SEED_DEMO_DATA,
        recommendation_limit=settings.RECOMMENDATION_LIMIT,
        search_limit=settings.SEARCH_RESULT_LIMIT,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: configure logging and build services on startup."""
    settings = get_settings()
    configure_structlog()
    init_services(app, settings)

    yield

    structlog.get_logger(__name__).info("shutdown_complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Sales CRM API",
        version="0.1.0",
        description="Sales CRM records, deal recommendations, search and assistant",
        lifespan=lifespan,
    )

    # Middleware is added in reverse order (last added = outermost)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Logging middleware (logs every request with timing)
    app.add_middleware(LoggingMiddleware)

    # Metrics middleware (outermost -- records Prometheus metrics for all requests)
    app.add_middleware(MetricsMiddleware)

    app.include_router(v1_router, prefix="/api/v1")

    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    return app


# Module-level app for uvicorn
app = create_app()

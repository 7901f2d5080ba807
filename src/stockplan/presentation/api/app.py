"""FastAPI application factory.

Creates and configures the FastAPI application with routers, middleware,
exception handlers and the background token cleanup.

API Versioning:
    All API endpoints are versioned under /api/v1/ prefix.
    The health check endpoint remains unversioned at /health.

Run with ``stockplan serve`` or
``uvicorn --factory stockplan.presentation.api.app:create_app``.
"""

import logging
import sys
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from stockplan.application.services import TokenCleanupService
from stockplan.presentation.api.config import get_api_settings
from stockplan.presentation.api.dependencies import (
    create_engine,
    create_session_maker,
    create_tables,
)
from stockplan.presentation.api.exception_handlers import setup_exception_handlers
from stockplan.presentation.api.routers import auth_router
from stockplan_auth.persistence.sqlalchemy import auth_repository_scope
from stockplan_config.settings import Settings


@lru_cache(maxsize=1)
def _configure_logging(log_level_name: str) -> None:
    """Configure application logging.

    Console output with timestamps and module names, the configured level
    for our packages and WARNING for noisy third-party loggers.
    """
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)

    log_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt=date_format,
        stream=sys.stdout,
        force=True,
    )

    logging.getLogger("stockplan").setLevel(log_level)
    logging.getLogger("stockplan_auth").setLevel(log_level)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("asyncpg").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"
API_V1_PREFIX = "/api/v1"

OPENAPI_TAGS = [
    {
        "name": "Authentication",
        "description": """User authentication and session management.

**Sessions:**
- Register or login to obtain an access token and a refresh token
- Refresh tokens are single-use; each refresh returns a new pair

**Password reset:**
- Request a 6-digit code by email, then submit it with a new password
- Codes expire after 15 minutes by default and work once
""",
    },
    {
        "name": "Health",
        "description": "Service liveness.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("Starting StockPlan API v%s...", API_VERSION)
    await _init_database_schema(app.state.engine)

    token_cleanup: TokenCleanupService = app.state.token_cleanup
    if app.state.settings.auth_token_cleanup_enabled:
        token_cleanup.start()
    else:
        logger.info("Auth token cleanup disabled")

    yield

    logger.info("Shutting down StockPlan API...")
    await token_cleanup.stop()
    await app.state.engine.dispose()
    logger.info("Database connections closed")


async def _init_database_schema(engine: AsyncEngine) -> None:
    """Create the schema if needed and verify connectivity."""
    try:
        await create_tables(engine)
    except (ConnectionRefusedError, OSError):
        logger.critical("Could not connect to the database.")
        raise SystemExit(1) from None


def create_token_cleanup(
    settings: Settings,
    session_maker: async_sessionmaker[AsyncSession],
) -> TokenCleanupService:
    return TokenCleanupService(
        repository_factory=auth_repository_scope(session_maker),
        interval_seconds=settings.auth_token_cleanup_interval_seconds,
        initial_delay_seconds=settings.auth_token_cleanup_initial_delay_seconds,
    )


def create_v1_router() -> APIRouter:
    """Create the v1 API router with all endpoints."""
    v1_router = APIRouter()
    v1_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])
    return v1_router


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    settings
        Optional settings override for testing. When given, it also
        replaces the settings dependency of every request.

    Returns
    -------
    Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_api_settings()

    _configure_logging(settings.log_level)

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Authentication and session management for StockPlan.",
        version=API_VERSION,
        docs_url="/docs" if settings.api_debug else None,
        redoc_url="/redoc" if settings.api_debug else None,
        openapi_url="/openapi.json" if settings.api_debug else None,
        lifespan=lifespan,
        openapi_tags=OPENAPI_TAGS,
    )
    app.state.settings = settings
    app.state.engine = create_engine(settings)
    app.state.session_maker = create_session_maker(app.state.engine)
    app.state.token_cleanup = create_token_cleanup(settings, app.state.session_maker)
    app.dependency_overrides[get_api_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    app.include_router(create_v1_router(), prefix=API_V1_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict:
        """Health check endpoint (unversioned, for load balancers)."""
        return {
            "status": "healthy",
            "version": API_VERSION,
            "api_versions": ["v1"],
        }

    return app

"""FastAPI dependency injection for the StockPlan API.

Provides dependencies for:
- Database sessions
- Authentication services
- The current user (from the bearer token)
"""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from stockplan.application.dtos import AuthUserSummary
from stockplan.application.services import AuthenticationService
from stockplan.infrastructure.email import MailerService, create_mailer_service
from stockplan.presentation.api.config import get_api_settings
from stockplan_auth import (
    AuthRepository,
    InvalidTokenError,
    JWTService,
    PasswordHashingService,
)
from stockplan_auth.persistence.sqlalchemy import AuthBase, AuthRepositorySQLAlchemy
from stockplan_config.settings import Settings

logger = logging.getLogger(__name__)

# Security scheme for JWT Bearer tokens
security = HTTPBearer(auto_error=False)

SettingsDep = Annotated[Settings, Depends(get_api_settings)]


# -----------------------------------------------------------------------------
# Database Engine & Session
# -----------------------------------------------------------------------------


def create_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async database engine for one application instance.

    The engine manages the connection pool and lives on ``app.state`` until
    the lifespan disposes it.
    """
    return create_async_engine(
        settings.database_url,
        echo=False,
        pool_pre_ping=True,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    Routers commit on success and roll back on failure; the session is
    closed when the request finishes either way.
    """
    session_maker: async_sessionmaker[AsyncSession] = request.app.state.session_maker
    async with session_maker() as session:
        yield session


DBSession = Annotated[AsyncSession, Depends(get_db_session)]


async def create_tables(engine: AsyncEngine) -> None:
    """Create the auth tables (idempotent)."""
    logger.info("Ensuring auth tables exist...")

    async with engine.begin() as conn:
        await conn.run_sync(AuthBase.metadata.create_all)

    logger.info("Database schema is up to date")


# -----------------------------------------------------------------------------
# Authentication Services
# -----------------------------------------------------------------------------


def get_auth_repository(session: DBSession) -> AuthRepository:
    return AuthRepositorySQLAlchemy(session)


def get_password_service(settings: SettingsDep) -> PasswordHashingService:
    """Get password hashing service with the configured bcrypt cost."""
    return PasswordHashingService(rounds=settings.password_hash_rounds)


def get_jwt_service(settings: SettingsDep) -> JWTService:
    """Get JWT service configured with API settings."""
    return JWTService(
        secret_key=settings.jwt_secret_key.get_secret_value(),
        access_token_expires_in=settings.jwt_expires_in_seconds,
    )


def get_mailer_service(settings: SettingsDep) -> MailerService:
    return create_mailer_service(settings)


def get_authentication_service(  # noqa: PLR0913
    settings: SettingsDep,
    repository: AuthRepository = Depends(get_auth_repository),
    password_service: PasswordHashingService = Depends(get_password_service),
    jwt_service: JWTService = Depends(get_jwt_service),
    mailer: MailerService = Depends(get_mailer_service),
) -> AuthenticationService:
    """
    Get authentication service with all dependencies.

    The repository shares the request's session, so whatever the service
    writes is committed or rolled back by the router.
    """
    return AuthenticationService(
        repository=repository,
        password_service=password_service,
        jwt_service=jwt_service,
        mailer=mailer,
        refresh_token_expires_in=settings.jwt_refresh_expires_in_seconds,
        reset_code_ttl=settings.auth_reset_code_ttl,
        return_reset_code=settings.auth_reset_return_code,
    )


AuthService = Annotated[AuthenticationService, Depends(get_authentication_service)]


# -----------------------------------------------------------------------------
# Current User (JWT Authentication)
# -----------------------------------------------------------------------------


async def get_current_user(
    auth_service: AuthService,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> AuthUserSummary:
    """
    FastAPI dependency to get the current authenticated user from JWT.

    Raises
    ------
    InvalidTokenError
        If the header is missing, the token does not verify, or its
        subject no longer exists. Mapped to 401 by the exception handlers.
    """
    if credentials is None:
        raise InvalidTokenError("Authentication required")

    return await auth_service.current_user(credentials.credentials)


CurrentUser = Annotated[AuthUserSummary, Depends(get_current_user)]

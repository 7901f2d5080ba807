"""Authentication router for registration, login, sessions and password reset."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import APIRouter, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from stockplan.presentation.api.dependencies import AuthService, CurrentUser, DBSession
from stockplan.presentation.api.schemas.auth import (
    AuthUserResponse,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SessionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@asynccontextmanager
async def _transaction(session: AsyncSession) -> AsyncIterator[None]:
    """Commit the request session if the block succeeds, roll back otherwise."""
    try:
        yield
    except Exception:
        await session.rollback()
        raise
    await session.commit()


@router.post(
    "/register",
    summary="Register a new user",
    responses={
        200: {"description": "User registered, session issued"},
        400: {"description": "Invalid email or password"},
        409: {"description": "Email already registered"},
    },
)
async def register(
    request: RegisterRequest,
    auth_service: AuthService,
    session: DBSession,
) -> SessionResponse:
    async with _transaction(session):
        bundle = await auth_service.register(
            email=request.email,
            password=request.password,
        )

    logger.info("New user registered: %s", bundle.user_id)
    return SessionResponse.from_bundle(bundle)


@router.post(
    "/login",
    summary="Authenticate user",
    responses={
        200: {"description": "Login successful"},
        400: {"description": "Invalid email or password shape"},
        401: {"description": "Invalid credentials"},
    },
)
async def login(
    request: LoginRequest,
    auth_service: AuthService,
    session: DBSession,
) -> SessionResponse:
    """
    Authenticate with email and password.

    Unknown email and wrong password are indistinguishable.
    """
    async with _transaction(session):
        bundle = await auth_service.login(
            email=request.email,
            password=request.password,
        )
    return SessionResponse.from_bundle(bundle)


@router.get(
    "/me",
    summary="Get current user",
    responses={401: {"description": "Missing, invalid or expired token"}},
)
async def me(current_user: CurrentUser) -> AuthUserResponse:
    return AuthUserResponse.from_summary(current_user)


@router.post(
    "/forgot-password",
    summary="Request a password reset code",
    responses={
        200: {"description": "Acknowledged (always, whether or not the email exists)"},
        400: {"description": "Invalid email"},
    },
)
async def forgot_password(
    request: ForgotPasswordRequest,
    auth_service: AuthService,
    session: DBSession,
) -> ForgotPasswordResponse:
    async with _transaction(session):
        ack = await auth_service.forgot_password(request.email)
    await auth_service.deliver_pending_mail()
    return ForgotPasswordResponse.from_acknowledgement(ack)


@router.post(
    "/resend-reset",
    summary="Resend a password reset code",
    responses={
        200: {"description": "Acknowledged (always, whether or not the email exists)"},
        400: {"description": "Invalid email"},
    },
)
async def resend_reset(
    request: ForgotPasswordRequest,
    auth_service: AuthService,
    session: DBSession,
) -> ForgotPasswordResponse:
    """Issue a fresh code. Earlier unexpired codes stay valid until used."""
    async with _transaction(session):
        ack = await auth_service.resend_reset_code(request.email)
    await auth_service.deliver_pending_mail()
    return ForgotPasswordResponse.from_acknowledgement(ack)


@router.post(
    "/reset-password",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Reset password with a code",
    responses={
        204: {"description": "Password updated"},
        400: {"description": "Invalid email, code format or new password"},
        401: {"description": "Invalid, expired or used reset code"},
    },
)
async def reset_password(
    request: ResetPasswordRequest,
    auth_service: AuthService,
    session: DBSession,
) -> Response:
    async with _transaction(session):
        await auth_service.reset_password(
            email=request.email,
            code=request.code,
            new_password=request.new_password,
        )

    logger.info("Password reset completed")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/refresh",
    summary="Rotate a refresh token",
    responses={
        200: {"description": "New session issued, old refresh token revoked"},
        401: {"description": "Invalid, expired or already used refresh token"},
    },
)
async def refresh(
    request: RefreshRequest,
    auth_service: AuthService,
    session: DBSession,
) -> SessionResponse:
    async with _transaction(session):
        bundle = await auth_service.refresh(request.refresh_token)
    return SessionResponse.from_bundle(bundle)

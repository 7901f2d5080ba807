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

__all__ = [
    "AuthUserResponse",
    "ForgotPasswordRequest",
    "ForgotPasswordResponse",
    "LoginRequest",
    "RefreshRequest",
    "RegisterRequest",
    "ResetPasswordRequest",
    "SessionResponse",
]

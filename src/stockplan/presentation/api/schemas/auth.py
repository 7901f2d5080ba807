"""Authentication schemas for request/response models.

JSON uses camelCase field names; Python code uses snake_case. Requests
accept either. Email and password shape is validated by the service, not
here, so that every malformed input maps to the same 400 response.
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from stockplan.application.dtos import (
    AuthUserSummary,
    PasswordResetAcknowledgement,
    SessionBundle,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(CamelModel):
    """Request schema for user registration."""

    email: str
    password: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "user@example.com",
                "password": "securepassword123",
            },
        },
    )


class LoginRequest(CamelModel):
    """Request schema for user login."""

    email: str
    password: str


class ForgotPasswordRequest(CamelModel):
    """Request schema for requesting (or re-requesting) a reset code."""

    email: str


class ResetPasswordRequest(CamelModel):
    """Request schema for resetting a password with an emailed code."""

    email: str
    code: str
    new_password: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "user@example.com",
                "code": "042917",
                "newPassword": "anothersecurepassword",
            },
        },
    )


class RefreshRequest(CamelModel):
    """Request schema for token refresh."""

    refresh_token: str


class SessionResponse(CamelModel):
    """Session bundle returned by register, login and refresh.

    ``refreshToken`` is single-use: redeeming it at /auth/refresh revokes
    it and returns a new one.
    """

    token: str
    user_id: UUID
    expires_in: int = Field(description="Access token lifetime in seconds")
    refresh_token: str
    refresh_expires_in: int = Field(description="Refresh token lifetime in seconds")

    @classmethod
    def from_bundle(cls, bundle: SessionBundle) -> "SessionResponse":
        return cls(
            token=bundle.access_token,
            user_id=bundle.user_id,
            expires_in=bundle.expires_in,
            refresh_token=bundle.refresh_token,
            refresh_expires_in=bundle.refresh_expires_in,
        )


class AuthUserResponse(CamelModel):
    id: str
    email: str

    @classmethod
    def from_summary(cls, summary: AuthUserSummary) -> "AuthUserResponse":
        return cls(id=str(summary.id), email=summary.email)


class ForgotPasswordResponse(CamelModel):
    message: str
    reset_code: str | None = None

    @classmethod
    def from_acknowledgement(
        cls,
        ack: PasswordResetAcknowledgement,
    ) -> "ForgotPasswordResponse":
        return cls(message=ack.message, reset_code=ack.reset_code)

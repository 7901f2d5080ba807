"""Result objects returned by the authentication service."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class SessionBundle:
    """Access token plus a freshly minted refresh token.

    ``refresh_token`` is the raw value; only its digest is stored, so this is
    the one and only time it can be read.
    """

    access_token: str
    user_id: UUID
    expires_in: int
    refresh_token: str
    refresh_expires_in: int


@dataclass(frozen=True)
class AuthUserSummary:
    id: UUID
    email: str


@dataclass(frozen=True)
class PasswordResetAcknowledgement:
    """Identical for known and unknown emails; ``reset_code`` only in debug mode."""

    message: str
    reset_code: str | None = None

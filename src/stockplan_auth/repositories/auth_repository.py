"""Abstract repository interface for authentication records.

The auth repository is the only component that reads or writes users,
refresh tokens and password reset tokens for authentication purposes.
It holds no business rules: "valid" lookups filter on the caller's
``now`` and return ``None`` when nothing matches.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class UserData:
    """Immutable user record returned by the repository."""

    id: UUID
    email: str
    password_hash: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class RefreshTokenData:
    """Immutable refresh token record. ``token_hash`` is a digest, never the raw token."""

    id: UUID
    user_id: UUID
    token_hash: str
    expires_at: datetime
    revoked_at: datetime | None
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def is_revoked(self) -> bool:
        return self.revoked_at is not None


@dataclass(frozen=True)
class PasswordResetTokenData:
    """Immutable password reset token record."""

    id: UUID
    user_id: UUID
    code_hash: str
    expires_at: datetime
    used_at: datetime | None
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def is_used(self) -> bool:
        return self.used_at is not None


class AuthRepository(ABC):
    """
    Abstract repository for users and their auth tokens.

    Implementations must treat ``expires_at == now`` as expired and must
    make ``revoke_refresh_token`` / ``mark_password_reset_token_used``
    conditional, so that exactly one concurrent caller wins.
    """

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    @abstractmethod
    async def find_user_by_email(self, email: str) -> UserData | None:
        """Find a user by an already-normalized email address."""

    @abstractmethod
    async def find_user_by_id(self, user_id: UUID) -> UserData | None:
        """Find a user by ID."""

    @abstractmethod
    async def create_user(self, email: str, password_hash: str) -> UserData:
        """
        Create a user.

        Raises
        ------
        EmailAlreadyExistsError
            If the store's email uniqueness constraint rejects the row
        """

    @abstractmethod
    async def update_user_password(self, user_id: UUID, password_hash: str) -> None:
        """Replace a user's password hash."""

    # -------------------------------------------------------------------------
    # Password reset tokens
    # -------------------------------------------------------------------------

    @abstractmethod
    async def create_password_reset_token(
        self,
        user_id: UUID,
        code_hash: str,
        expires_at: datetime,
    ) -> UUID:
        """Persist a reset code digest and return the token's ID."""

    @abstractmethod
    async def find_valid_password_reset_token(
        self,
        user_id: UUID,
        code_hash: str,
        now: datetime,
    ) -> PasswordResetTokenData | None:
        """Find the most recently created unused, unexpired matching token."""

    @abstractmethod
    async def mark_password_reset_token_used(
        self,
        token_id: UUID,
        used_at: datetime,
    ) -> bool:
        """
        Mark a token used if it is still unused.

        Returns
        -------
        True if this call marked the token, False if it was already used
        (or does not exist)
        """

    @abstractmethod
    async def delete_expired_password_reset_tokens(self, now: datetime) -> int:
        """Delete tokens with ``expires_at <= now``. Returns the number deleted."""

    # -------------------------------------------------------------------------
    # Refresh tokens
    # -------------------------------------------------------------------------

    @abstractmethod
    async def create_refresh_token(
        self,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
    ) -> UUID:
        """Persist a refresh token digest and return the token's ID."""

    @abstractmethod
    async def find_valid_refresh_token(
        self,
        token_hash: str,
        now: datetime,
    ) -> RefreshTokenData | None:
        """Find an unrevoked, unexpired refresh token by digest."""

    @abstractmethod
    async def revoke_refresh_token(self, token_id: UUID, revoked_at: datetime) -> bool:
        """
        Revoke a token if it is still unrevoked.

        Returns
        -------
        True if this call revoked the token, False if another caller did
        """

    @abstractmethod
    async def delete_stale_refresh_tokens(self, now: datetime) -> int:
        """Delete expired (``expires_at <= now``) or revoked tokens. Returns the count."""

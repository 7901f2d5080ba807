"""In-memory implementation of AuthRepository.

Mirrors the SQLAlchemy implementation's semantics (unique emails and
token digests, ``expires_at > now`` validity, conditional revocation) so
services can be exercised without a database. A single ``asyncio.Lock``
serializes mutations, which gives the same at-most-one-winner guarantee
as the conditional UPDATEs.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable
from uuid import UUID, uuid4

from stockplan.domain.shared.time import utc_now
from stockplan_auth.exceptions import ConflictError, EmailAlreadyExistsError
from stockplan_auth.repositories import (
    AuthRepository,
    PasswordResetTokenData,
    RefreshTokenData,
    UserData,
)

logger = logging.getLogger(__name__)


class InMemoryAuthRepository(AuthRepository):
    """Dictionary-backed auth repository for tests and local experiments."""

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock
        self._lock = asyncio.Lock()
        self._users: dict[UUID, UserData] = {}
        self._refresh_tokens: dict[UUID, RefreshTokenData] = {}
        self._reset_tokens: dict[UUID, PasswordResetTokenData] = {}

    # Read-only views for assertions
    @property
    def users(self) -> list[UserData]:
        return list(self._users.values())

    @property
    def refresh_tokens(self) -> list[RefreshTokenData]:
        return list(self._refresh_tokens.values())

    @property
    def password_reset_tokens(self) -> list[PasswordResetTokenData]:
        return list(self._reset_tokens.values())

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def find_user_by_email(self, email: str) -> UserData | None:
        return next((u for u in self._users.values() if u.email == email), None)

    async def find_user_by_id(self, user_id: UUID) -> UserData | None:
        return self._users.get(user_id)

    async def create_user(self, email: str, password_hash: str) -> UserData:
        async with self._lock:
            if any(u.email == email for u in self._users.values()):
                raise EmailAlreadyExistsError(email)
            now = self._clock()
            user = UserData(
                id=uuid4(),
                email=email,
                password_hash=password_hash,
                created_at=now,
                updated_at=now,
            )
            self._users[user.id] = user
        logger.debug("Created in-memory user: %s", user.id)
        return user

    async def update_user_password(self, user_id: UUID, password_hash: str) -> None:
        async with self._lock:
            user = self._users.get(user_id)
            if user is not None:
                self._users[user_id] = replace(
                    user,
                    password_hash=password_hash,
                    updated_at=self._clock(),
                )

    async def delete_user(self, user_id: UUID) -> None:
        """Remove a user and cascade to its tokens (like the FK on delete)."""
        async with self._lock:
            self._users.pop(user_id, None)
            self._refresh_tokens = {
                k: t for k, t in self._refresh_tokens.items() if t.user_id != user_id
            }
            self._reset_tokens = {
                k: t for k, t in self._reset_tokens.items() if t.user_id != user_id
            }

    # -------------------------------------------------------------------------
    # Password reset tokens
    # -------------------------------------------------------------------------

    async def create_password_reset_token(
        self,
        user_id: UUID,
        code_hash: str,
        expires_at: datetime,
    ) -> UUID:
        token = PasswordResetTokenData(
            id=uuid4(),
            user_id=user_id,
            code_hash=code_hash,
            expires_at=expires_at,
            used_at=None,
            created_at=self._clock(),
        )
        async with self._lock:
            self._reset_tokens[token.id] = token
        return token.id

    async def find_valid_password_reset_token(
        self,
        user_id: UUID,
        code_hash: str,
        now: datetime,
    ) -> PasswordResetTokenData | None:
        # dicts keep insertion order, so max() breaks created_at ties by recency
        candidates = [
            t
            for t in self._reset_tokens.values()
            if t.user_id == user_id
            and t.code_hash == code_hash
            and not t.is_used()
            and not t.is_expired(now)
        ]
        if not candidates:
            return None
        return max(enumerate(candidates), key=lambda it: (it[1].created_at, it[0]))[1]

    async def mark_password_reset_token_used(
        self,
        token_id: UUID,
        used_at: datetime,
    ) -> bool:
        async with self._lock:
            token = self._reset_tokens.get(token_id)
            if token is None or token.is_used():
                return False
            self._reset_tokens[token_id] = replace(token, used_at=used_at)
            return True

    async def delete_expired_password_reset_tokens(self, now: datetime) -> int:
        async with self._lock:
            expired = [k for k, t in self._reset_tokens.items() if t.is_expired(now)]
            for key in expired:
                del self._reset_tokens[key]
            return len(expired)

    # -------------------------------------------------------------------------
    # Refresh tokens
    # -------------------------------------------------------------------------

    async def create_refresh_token(
        self,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
    ) -> UUID:
        async with self._lock:
            if any(t.token_hash == token_hash for t in self._refresh_tokens.values()):
                msg = "Refresh token hash already exists"
                raise ConflictError(msg)
            token = RefreshTokenData(
                id=uuid4(),
                user_id=user_id,
                token_hash=token_hash,
                expires_at=expires_at,
                revoked_at=None,
                created_at=self._clock(),
            )
            self._refresh_tokens[token.id] = token
        return token.id

    async def find_valid_refresh_token(
        self,
        token_hash: str,
        now: datetime,
    ) -> RefreshTokenData | None:
        return next(
            (
                t
                for t in self._refresh_tokens.values()
                if t.token_hash == token_hash
                and not t.is_revoked()
                and not t.is_expired(now)
            ),
            None,
        )

    async def revoke_refresh_token(self, token_id: UUID, revoked_at: datetime) -> bool:
        async with self._lock:
            token = self._refresh_tokens.get(token_id)
            if token is None or token.is_revoked():
                return False
            self._refresh_tokens[token_id] = replace(token, revoked_at=revoked_at)
            return True

    async def delete_stale_refresh_tokens(self, now: datetime) -> int:
        async with self._lock:
            stale = [
                k
                for k, t in self._refresh_tokens.items()
                if t.is_expired(now) or t.is_revoked()
            ]
            for key in stale:
                del self._refresh_tokens[key]
            return len(stale)

"""SQLAlchemy implementation of AuthRepository.

Single-use semantics for refresh tokens and reset codes rest on
conditional UPDATEs (``... WHERE revoked_at IS NULL``): under concurrent
redemption the row lock lets exactly one statement match, and the others
see ``rowcount == 0``.
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stockplan.domain.shared.time import ensure_tz_aware, utc_now
from stockplan_auth.exceptions import AuthInvariantError, EmailAlreadyExistsError
from stockplan_auth.persistence.sqlalchemy.models import (
    PasswordResetTokenModel,
    RefreshTokenModel,
    UserModel,
)
from stockplan_auth.repositories import (
    AuthRepository,
    PasswordResetTokenData,
    RefreshTokenData,
    UserData,
)

logger = logging.getLogger(__name__)


class AuthRepositorySQLAlchemy(AuthRepository):
    """
    SQLAlchemy implementation of AuthRepository.

    The repository only flushes; committing the unit of work is up to the
    owner of the session (the request handler or the cleanup task).
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Parameters
        ----------
        session
            SQLAlchemy async session
        """
        self._session = session

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def find_user_by_email(self, email: str) -> UserData | None:
        stmt = select(UserModel).where(UserModel.email == email)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._user_to_data(model) if model else None

    async def find_user_by_id(self, user_id: UUID) -> UserData | None:
        stmt = select(UserModel).where(UserModel.id == user_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._user_to_data(model) if model else None

    async def create_user(self, email: str, password_hash: str) -> UserData:
        model = UserModel(email=email, password_hash=password_hash)
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as e:
            if "unique" in str(e).lower():
                raise EmailAlreadyExistsError(email) from e
            raise

        logger.info("Created user: %s", model.id)
        return self._user_to_data(model)

    async def update_user_password(self, user_id: UUID, password_hash: str) -> None:
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(password_hash=password_hash, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)
        await self._session.flush()

    # -------------------------------------------------------------------------
    # Password reset tokens
    # -------------------------------------------------------------------------

    async def create_password_reset_token(
        self,
        user_id: UUID,
        code_hash: str,
        expires_at: datetime,
    ) -> UUID:
        model = PasswordResetTokenModel(
            user_id=user_id,
            code_hash=code_hash,
            expires_at=expires_at,
        )
        self._session.add(model)
        await self._session.flush()
        return model.id

    async def find_valid_password_reset_token(
        self,
        user_id: UUID,
        code_hash: str,
        now: datetime,
    ) -> PasswordResetTokenData | None:
        stmt = (
            select(PasswordResetTokenModel)
            .where(
                PasswordResetTokenModel.user_id == user_id,
                PasswordResetTokenModel.code_hash == code_hash,
                PasswordResetTokenModel.used_at.is_(None),
                PasswordResetTokenModel.expires_at > now,
            )
            .order_by(PasswordResetTokenModel.created_at.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalars().first()
        return self._reset_token_to_data(model) if model else None

    async def mark_password_reset_token_used(
        self,
        token_id: UUID,
        used_at: datetime,
    ) -> bool:
        stmt = (
            update(PasswordResetTokenModel)
            .where(
                PasswordResetTokenModel.id == token_id,
                PasswordResetTokenModel.used_at.is_(None),
            )
            .values(used_at=used_at)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def delete_expired_password_reset_tokens(self, now: datetime) -> int:
        stmt = delete(PasswordResetTokenModel).where(
            PasswordResetTokenModel.expires_at <= now,
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount  # type: ignore[attr-defined]

    # -------------------------------------------------------------------------
    # Refresh tokens
    # -------------------------------------------------------------------------

    async def create_refresh_token(
        self,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
    ) -> UUID:
        model = RefreshTokenModel(
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
        )
        self._session.add(model)
        await self._session.flush()
        return model.id

    async def find_valid_refresh_token(
        self,
        token_hash: str,
        now: datetime,
    ) -> RefreshTokenData | None:
        stmt = select(RefreshTokenModel).where(
            RefreshTokenModel.token_hash == token_hash,
            RefreshTokenModel.revoked_at.is_(None),
            RefreshTokenModel.expires_at > now,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._refresh_token_to_data(model) if model else None

    async def revoke_refresh_token(self, token_id: UUID, revoked_at: datetime) -> bool:
        stmt = (
            update(RefreshTokenModel)
            .where(
                RefreshTokenModel.id == token_id,
                RefreshTokenModel.revoked_at.is_(None),
            )
            .values(revoked_at=revoked_at)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def delete_stale_refresh_tokens(self, now: datetime) -> int:
        stmt = delete(RefreshTokenModel).where(
            or_(
                RefreshTokenModel.expires_at <= now,
                RefreshTokenModel.revoked_at.is_not(None),
            ),
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount  # type: ignore[attr-defined]

    # -------------------------------------------------------------------------
    # Mapping
    # -------------------------------------------------------------------------

    def _user_to_data(self, model: UserModel) -> UserData:
        if model.id is None:
            msg = "Persisted user is missing its identifier"
            raise AuthInvariantError(msg)
        return UserData(
            id=model.id,
            email=model.email,
            password_hash=model.password_hash,
            created_at=ensure_tz_aware(model.created_at),
            updated_at=ensure_tz_aware(model.updated_at),
        )

    def _refresh_token_to_data(self, model: RefreshTokenModel) -> RefreshTokenData:
        return RefreshTokenData(
            id=model.id,
            user_id=model.user_id,
            token_hash=model.token_hash,
            expires_at=ensure_tz_aware(model.expires_at),
            revoked_at=ensure_tz_aware(model.revoked_at) if model.revoked_at else None,
            created_at=ensure_tz_aware(model.created_at),
        )

    def _reset_token_to_data(
        self,
        model: PasswordResetTokenModel,
    ) -> PasswordResetTokenData:
        return PasswordResetTokenData(
            id=model.id,
            user_id=model.user_id,
            code_hash=model.code_hash,
            expires_at=ensure_tz_aware(model.expires_at),
            used_at=ensure_tz_aware(model.used_at) if model.used_at else None,
            created_at=ensure_tz_aware(model.created_at),
        )

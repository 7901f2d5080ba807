"""Authentication service: registration, login, sessions and password reset."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable

from stockplan.application.dtos import (
    AuthUserSummary,
    PasswordResetAcknowledgement,
    SessionBundle,
)
from stockplan.domain.shared.time import utc_now
from stockplan.infrastructure.email import MailerService, MailMessage
from stockplan_auth import (
    AuthRepository,
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    InvalidEmailError,
    InvalidInputError,
    InvalidRefreshTokenError,
    InvalidResetCodeError,
    InvalidTokenError,
    JWTService,
    PasswordHashingService,
    UserData,
)
from stockplan_auth.services import (
    generate_refresh_token,
    generate_reset_code,
    hash_secret,
)
from stockplan_auth.services.secret_tokens import RESET_CODE_DIGITS

logger = logging.getLogger(__name__)

RESET_ACKNOWLEDGEMENT = "If the account exists, a reset code has been sent."
RESET_MAIL_SUBJECT = "Your StockPlan reset code"
RESET_MAIL_BODY = "Use this code to reset your password: {code}"


def normalize_email(email: str) -> str:
    """Trim and lowercase an email, rejecting empty values and values without '@'."""
    normalized = email.strip().lower()
    if not normalized or "@" not in normalized:
        raise InvalidEmailError
    return normalized


class AuthenticationService:
    """
    Application service for user authentication.

    Sole owner of the token lifecycle: access tokens are signed by
    ``JWTService``, refresh tokens and reset codes are opaque random
    strings whose SHA-256 digests go through the ``AuthRepository``.

    Refresh tokens are single-use. ``refresh`` revokes the presented token
    with a conditional update before issuing a new bundle; whoever loses
    that race gets ``InvalidRefreshTokenError`` exactly as if the token had
    never existed. Reset codes follow the same pattern.

    Reset mails are queued, not sent: callers commit first and then call
    ``deliver_pending_mail``.
    """

    DEFAULT_REFRESH_EXPIRES_IN = 60 * 60 * 24 * 30
    DEFAULT_RESET_CODE_TTL = timedelta(minutes=15)

    def __init__(  # noqa: PLR0913
        self,
        repository: AuthRepository,
        password_service: PasswordHashingService,
        jwt_service: JWTService,
        mailer: MailerService,
        refresh_token_expires_in: int = DEFAULT_REFRESH_EXPIRES_IN,
        reset_code_ttl: timedelta = DEFAULT_RESET_CODE_TTL,
        return_reset_code: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._repo = repository
        self._password_service = password_service
        self._jwt_service = jwt_service
        self._mailer = mailer
        self._refresh_expires_in = refresh_token_expires_in
        self._reset_code_ttl = reset_code_ttl
        self._return_reset_code = return_reset_code
        self._clock = clock
        self._outbox: list[MailMessage] = []

    # -------------------------------------------------------------------------
    # Registration and login
    # -------------------------------------------------------------------------

    async def register(self, email: str, password: str) -> SessionBundle:
        normalized = normalize_email(email)
        self._password_service.validate_strength(password)

        if await self._repo.find_user_by_email(normalized) is not None:
            raise EmailAlreadyExistsError(normalized)

        password_hash = self._password_service.hash(password)
        user = await self._repo.create_user(normalized, password_hash)

        logger.info("User registered: %s", user.id)
        return await self._issue_session(user)

    async def login(self, email: str, password: str) -> SessionBundle:
        normalized = normalize_email(email)
        self._password_service.validate_strength(password)

        user = await self._repo.find_user_by_email(normalized)
        if user is None:
            # Same bcrypt cost as a wrong password
            self._password_service.verify_against_dummy(password)
            logger.info("Login failed: unknown email")
            raise InvalidCredentialsError

        if not self._password_service.verify(password, user.password_hash):
            logger.info("Login failed: wrong password for user %s", user.id)
            raise InvalidCredentialsError

        if self._password_service.needs_rehash(user.password_hash):
            await self._repo.update_user_password(
                user.id, self._password_service.hash(password)
            )
            logger.info("Password hash upgraded for user %s", user.id)

        logger.info("User logged in: %s", user.id)
        return await self._issue_session(user)

    # -------------------------------------------------------------------------
    # Bearer tokens
    # -------------------------------------------------------------------------

    async def authenticate(self, token: str) -> UserData:
        """Resolve a bearer token to the user it was issued for."""
        claims = self._jwt_service.verify_token(token)

        if not claims.is_access_token():
            msg = "Invalid token type"
            raise InvalidTokenError(msg)

        user = await self._repo.find_user_by_id(claims.user_id)
        if user is None:
            logger.warning("User not found for token: %s", claims.user_id)
            msg = "User not found"
            raise InvalidTokenError(msg)

        return user

    async def current_user(self, token: str) -> AuthUserSummary:
        user = await self.authenticate(token)
        return AuthUserSummary(id=user.id, email=user.email)

    # -------------------------------------------------------------------------
    # Password reset
    # -------------------------------------------------------------------------

    async def forgot_password(self, email: str) -> PasswordResetAcknowledgement:
        return await self._issue_reset_code(email)

    async def resend_reset_code(self, email: str) -> PasswordResetAcknowledgement:
        return await self._issue_reset_code(email)

    async def deliver_pending_mail(self) -> None:
        """Send the reset mails queued by this request.

        Call only after the reset tokens are committed. Send failures are
        logged and dropped; the answer to the caller stays generic.
        """
        pending, self._outbox = self._outbox, []
        for message in pending:
            try:
                await self._mailer.send(message)
                logger.info("Password reset code sent")
            except Exception as e:
                logger.error("Failed to send password reset code: %s", e)

    async def reset_password(self, email: str, code: str, new_password: str) -> None:
        normalized = normalize_email(email)
        self._password_service.validate_strength(new_password)
        code = code.strip()
        if len(code) != RESET_CODE_DIGITS or not code.isdigit():
            msg = "Invalid reset code format"
            raise InvalidInputError(msg)

        user = await self._repo.find_user_by_email(normalized)
        if user is None:
            raise InvalidResetCodeError

        now = self._clock()
        reset_token = await self._repo.find_valid_password_reset_token(
            user_id=user.id,
            code_hash=hash_secret(code),
            now=now,
        )
        if reset_token is None:
            raise InvalidResetCodeError

        if not await self._repo.mark_password_reset_token_used(reset_token.id, now):
            logger.warning("Reset code for user %s was redeemed concurrently", user.id)
            raise InvalidResetCodeError

        new_hash = self._password_service.hash(new_password)
        await self._repo.update_user_password(user.id, new_hash)

        logger.info("Password reset completed for user: %s", user.id)

    # -------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------

    async def refresh(self, refresh_token: str) -> SessionBundle:
        now = self._clock()
        stored = await self._repo.find_valid_refresh_token(
            token_hash=hash_secret(refresh_token),
            now=now,
        )
        if stored is None:
            raise InvalidRefreshTokenError

        user = await self._repo.find_user_by_id(stored.user_id)
        if user is None:
            raise InvalidRefreshTokenError

        if not await self._repo.revoke_refresh_token(stored.id, now):
            logger.warning("Refresh token for user %s was redeemed concurrently", user.id)
            raise InvalidRefreshTokenError

        logger.debug("Tokens refreshed for user: %s", user.id)
        return await self._issue_session(user, now)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _issue_session(
        self,
        user: UserData,
        now: datetime | None = None,
    ) -> SessionBundle:
        issued_at = now or self._clock()

        access_token = self._jwt_service.create_access_token(
            user_id=user.id,
            now=issued_at,
        )

        raw_refresh_token = generate_refresh_token()
        await self._repo.create_refresh_token(
            user_id=user.id,
            token_hash=hash_secret(raw_refresh_token),
            expires_at=issued_at + timedelta(seconds=self._refresh_expires_in),
        )

        return SessionBundle(
            access_token=access_token,
            user_id=user.id,
            expires_in=self._jwt_service.access_token_expires_in,
            refresh_token=raw_refresh_token,
            refresh_expires_in=self._refresh_expires_in,
        )

    async def _issue_reset_code(self, email: str) -> PasswordResetAcknowledgement:
        normalized = normalize_email(email)

        user = await self._repo.find_user_by_email(normalized)
        if user is None:
            # Same answer as the success path to prevent account enumeration
            logger.debug("Password reset requested for unknown email")
            return PasswordResetAcknowledgement(message=RESET_ACKNOWLEDGEMENT)

        code = generate_reset_code()
        expires_at = self._clock() + self._reset_code_ttl
        await self._repo.create_password_reset_token(
            user_id=user.id,
            code_hash=hash_secret(code),
            expires_at=expires_at,
        )

        self._outbox.append(
            MailMessage(
                to=normalized,
                subject=RESET_MAIL_SUBJECT,
                body=RESET_MAIL_BODY.format(code=code),
            )
        )

        return PasswordResetAcknowledgement(
            message=RESET_ACKNOWLEDGEMENT,
            reset_code=code if self._return_reset_code else None,
        )

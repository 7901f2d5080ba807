"""JWT token service.

Signs and verifies the stateless access tokens handed out in a session
bundle. Refresh tokens are opaque random strings (see
``secret_tokens``) and never pass through here.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import jwt

from stockplan_auth.exceptions import InvalidTokenError
from stockplan_auth.schemas import SessionClaims


class JWTService:
    """Service for access token creation and verification.

    Examples
    --------
    >>> service = JWTService(secret_key="your-secret-key")
    >>> token = service.create_access_token(user_id)
    >>> claims = service.verify_token(token)
    >>> print(claims.user_id)
    """

    DEFAULT_ACCESS_EXPIRES_IN_SECONDS = 60 * 60 * 24 * 7
    ALGORITHM = "HS256"

    def __init__(
        self,
        secret_key: str,
        access_token_expires_in: int = DEFAULT_ACCESS_EXPIRES_IN_SECONDS,
    ):
        """Initialize the JWT service.

        Parameters
        ----------
        secret_key
            HMAC key for signing tokens. Must be kept secure.
        access_token_expires_in
            Seconds until an access token expires (default 7 days)
        """
        if not secret_key:
            msg = "JWT secret key cannot be empty"
            raise ValueError(msg)

        self._secret_key = secret_key
        self._access_expires_in = access_token_expires_in

    @property
    def access_token_expires_in(self) -> int:
        return self._access_expires_in

    def create_access_token(
        self,
        user_id: UUID,
        expires_in: int | None = None,
        now: datetime | None = None,
    ) -> str:
        """Create a signed access token.

        Parameters
        ----------
        user_id
            The user's unique identifier
        expires_in
            Custom lifetime in seconds (optional)
        now
            Issue time (defaults to the current UTC time)

        Returns
        -------
        The encoded JWT token string
        """
        issued_at = now or datetime.now(tz=timezone.utc)
        lifetime = self._access_expires_in if expires_in is None else expires_in
        payload = {
            "sub": str(user_id),
            "type": "access",
            "iat": issued_at,
            "exp": issued_at + timedelta(seconds=lifetime),
            "jti": uuid4().hex,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.ALGORITHM)

    def verify_token(self, token: str) -> SessionClaims:
        """Verify and decode an access token.

        Raises
        ------
        InvalidTokenError
            If token is invalid, expired, or malformed
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.ALGORITHM],
                options={"require": ["exp", "sub"]},
            )

            return SessionClaims(
                user_id=UUID(payload["sub"]),
                token_type=payload.get("type", "access"),
            )

        except jwt.ExpiredSignatureError as e:
            raise InvalidTokenError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e
        except (KeyError, ValueError, TypeError) as e:
            raise InvalidTokenError(f"Malformed token payload: {e}") from e

"""Authentication exceptions.

These exceptions are raised by the auth core and translated 1:1 to HTTP
status codes by the presentation layer. The taxonomy is deliberately
coarse: every credential, token and reset-code failure is an
``UnauthorizedError`` so callers cannot tell which precondition failed.
"""

from enum import Enum


class AuthErrorCode(str, Enum):
    """Stable error codes for API clients."""

    INVALID_INPUT = "INVALID_INPUT"
    CONFLICT = "CONFLICT"
    UNAUTHORIZED = "UNAUTHORIZED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AuthError(Exception):
    """Base exception for all authentication errors."""

    code: AuthErrorCode = AuthErrorCode.INTERNAL_ERROR

    def __init__(self, message: str = "Authentication error"):
        self.message = message
        super().__init__(self.message)


# -----------------------------------------------------------------------------
# Invalid input (400)
# -----------------------------------------------------------------------------


class InvalidInputError(AuthError):
    """Raised when an email, password or code has the wrong shape."""

    code = AuthErrorCode.INVALID_INPUT

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message)


class InvalidEmailError(InvalidInputError):
    """Raised when an email is empty or has no '@'."""

    def __init__(self, message: str = "Invalid email"):
        super().__init__(message)


class WeakPasswordError(InvalidInputError):
    """Raised when a password doesn't meet length requirements."""

    def __init__(self, message: str = "Password does not meet requirements"):
        super().__init__(message)


# -----------------------------------------------------------------------------
# Conflict (409)
# -----------------------------------------------------------------------------


class ConflictError(AuthError):
    """Raised when a resource already exists."""

    code = AuthErrorCode.CONFLICT

    def __init__(self, message: str = "Conflict"):
        super().__init__(message)


class EmailAlreadyExistsError(ConflictError):
    """Email already registered."""

    def __init__(self, email: str | None = None) -> None:
        self.email = email
        super().__init__("Email already registered")


# -----------------------------------------------------------------------------
# Unauthorized (401)
# -----------------------------------------------------------------------------


class UnauthorizedError(AuthError):
    """Base for every failure that must surface as 401."""

    code = AuthErrorCode.UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class InvalidCredentialsError(UnauthorizedError):
    """Raised when email or password is incorrect during login."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class InvalidTokenError(UnauthorizedError):
    """Raised when a bearer token is invalid, expired, malformed or orphaned."""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)


class InvalidRefreshTokenError(UnauthorizedError):
    """Raised when a refresh token is unknown, expired or already redeemed."""

    def __init__(self, message: str = "Invalid refresh token"):
        super().__init__(message)


class InvalidResetCodeError(UnauthorizedError):
    """Raised when a reset code is unknown, expired or already used."""

    def __init__(self, message: str = "Invalid reset code"):
        super().__init__(message)


# -----------------------------------------------------------------------------
# Internal (500)
# -----------------------------------------------------------------------------


class AuthInvariantError(AuthError):
    """Raised when persisted auth state violates an internal invariant."""

    code = AuthErrorCode.INTERNAL_ERROR

    def __init__(self, message: str = "Internal authentication error"):
        super().__init__(message)

"""StockPlan Auth - authentication infrastructure.

This package provides authentication infrastructure that is independent
of the rest of the StockPlan domain. It handles:
- Password hashing (bcrypt)
- Access token signing and verification (JWT, HS256)
- Opaque refresh tokens and reset codes (stored only as SHA-256 digests)
- Auth record storage (with pluggable persistence)

Architecture:
    stockplan_auth/
    ├── services/           # Pure logic (password hashing, JWT, secrets)
    ├── repositories/       # Abstract interface and data records
    ├── persistence/        # Implementations by technology
    │   ├── sqlalchemy/     # SQLAlchemy implementation
    │   └── memory/         # In-memory implementation
    ├── schemas.py          # Data classes
    └── exceptions.py       # Auth exceptions

Usage:
    from stockplan_auth import JWTService, PasswordHashingService
    from stockplan_auth.persistence.sqlalchemy import AuthRepositorySQLAlchemy
"""

from stockplan_auth.exceptions import (
    AuthError,
    AuthErrorCode,
    AuthInvariantError,
    ConflictError,
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    InvalidEmailError,
    InvalidInputError,
    InvalidRefreshTokenError,
    InvalidResetCodeError,
    InvalidTokenError,
    UnauthorizedError,
    WeakPasswordError,
)
from stockplan_auth.repositories import (
    AuthRepository,
    PasswordResetTokenData,
    RefreshTokenData,
    UserData,
)
from stockplan_auth.schemas import SessionClaims
from stockplan_auth.services import JWTService, PasswordHashingService

__all__ = [
    # Services
    "JWTService",
    "PasswordHashingService",
    # Repositories
    "AuthRepository",
    "PasswordResetTokenData",
    "RefreshTokenData",
    "UserData",
    # Schemas
    "SessionClaims",
    # Exceptions
    "AuthError",
    "AuthErrorCode",
    "AuthInvariantError",
    "ConflictError",
    "EmailAlreadyExistsError",
    "InvalidCredentialsError",
    "InvalidEmailError",
    "InvalidInputError",
    "InvalidRefreshTokenError",
    "InvalidResetCodeError",
    "InvalidTokenError",
    "UnauthorizedError",
    "WeakPasswordError",
]

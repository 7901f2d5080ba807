"""Repository interfaces for stockplan_auth.

This package defines the abstract repository interface that is
implemented by different persistence technologies (SQLAlchemy, an
in-memory fake for tests).
"""

from stockplan_auth.repositories.auth_repository import (
    AuthRepository,
    PasswordResetTokenData,
    RefreshTokenData,
    UserData,
)

__all__ = [
    "AuthRepository",
    "PasswordResetTokenData",
    "RefreshTokenData",
    "UserData",
]

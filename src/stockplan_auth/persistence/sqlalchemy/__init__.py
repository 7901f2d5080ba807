"""SQLAlchemy implementation for stockplan_auth persistence.

Provides:
- AuthBase: Declarative base for auth models
- UserModel, RefreshTokenModel, PasswordResetTokenModel
- AuthRepositorySQLAlchemy: Repository implementation

Examples
--------
# Create the auth tables:
from stockplan_auth.persistence.sqlalchemy import AuthBase
async with engine.begin() as conn:
    await conn.run_sync(AuthBase.metadata.create_all)
"""

from stockplan_auth.persistence.sqlalchemy.base import AuthBase
from stockplan_auth.persistence.sqlalchemy.models import (
    PasswordResetTokenModel,
    RefreshTokenModel,
    UserModel,
)
from stockplan_auth.persistence.sqlalchemy.repositories import (
    AuthRepositorySQLAlchemy,
)
from stockplan_auth.persistence.sqlalchemy.session_scope import auth_repository_scope

__all__ = [
    "AuthBase",
    "AuthRepositorySQLAlchemy",
    "PasswordResetTokenModel",
    "RefreshTokenModel",
    "UserModel",
    "auth_repository_scope",
]

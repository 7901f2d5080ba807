"""Pure auth logic: password hashing, token signing, opaque secrets."""

from stockplan_auth.services.jwt_service import JWTService
from stockplan_auth.services.password_service import PasswordHashingService
from stockplan_auth.services.secret_tokens import (
    generate_refresh_token,
    generate_reset_code,
    hash_secret,
)

__all__ = [
    "JWTService",
    "PasswordHashingService",
    "generate_refresh_token",
    "generate_reset_code",
    "hash_secret",
]

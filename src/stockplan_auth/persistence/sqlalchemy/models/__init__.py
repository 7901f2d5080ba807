from stockplan_auth.persistence.sqlalchemy.models.password_reset_token_model import (
    PasswordResetTokenModel,
)
from stockplan_auth.persistence.sqlalchemy.models.refresh_token_model import (
    RefreshTokenModel,
)
from stockplan_auth.persistence.sqlalchemy.models.user_model import UserModel

__all__ = ["PasswordResetTokenModel", "RefreshTokenModel", "UserModel"]

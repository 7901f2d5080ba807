from stockplan_auth.persistence.sqlalchemy.repositories.auth_repository import (
    AuthRepositorySQLAlchemy,
)

__all__ = ["AuthRepositorySQLAlchemy"]

"""In-process implementation of the auth repository."""

from stockplan_auth.persistence.memory.auth_repository import InMemoryAuthRepository

__all__ = ["InMemoryAuthRepository"]

"""Data classes shared by the auth services."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class SessionClaims:
    """Claims reconstructed from a verified access token.

    Not persisted. Carries no revocation state: a signed access token stays
    valid until it expires regardless of what happens server-side.
    """

    user_id: UUID
    token_type: str = "access"

    def is_access_token(self) -> bool:
        return self.token_type == "access"

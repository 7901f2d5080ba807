from stockplan.application.dtos.auth import (
    AuthUserSummary,
    PasswordResetAcknowledgement,
    SessionBundle,
)

__all__ = ["AuthUserSummary", "PasswordResetAcknowledgement", "SessionBundle"]

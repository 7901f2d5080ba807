from stockplan.application.services.authentication_service import (
    AuthenticationService,
)
from stockplan.application.services.token_cleanup_service import (
    CleanupResult,
    TokenCleanupService,
)

__all__ = ["AuthenticationService", "CleanupResult", "TokenCleanupService"]

"""Centralized exception handlers for the FastAPI application.

Auth exceptions are mapped to HTTP responses by their error code.

Error Response Format:
    {
        "detail": "Human-readable error message",
        "code": "MACHINE_READABLE_ERROR_CODE"
    }
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from stockplan_auth import AuthError, AuthErrorCode

logger = logging.getLogger(__name__)


ERROR_CODE_TO_STATUS: dict[AuthErrorCode, int] = {
    AuthErrorCode.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    AuthErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    AuthErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _create_error_response(
    status_code: int,
    message: str,
    code: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": message,
            "code": code,
        },
        headers=headers,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI application.

    Parameters
    ----------
    app
        The FastAPI application instance
    """

    @app.exception_handler(AuthError)
    async def auth_exception_handler(
        request: Request,
        exc: AuthError,
    ) -> JSONResponse:
        status_code = ERROR_CODE_TO_STATUS.get(
            exc.code,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(
                "Auth invariant violated on %s %s: %s",
                request.method,
                request.url.path,
                exc.message,
            )
            return _create_error_response(
                status_code=status_code,
                message="An internal error occurred",
                code=AuthErrorCode.INTERNAL_ERROR.value,
            )

        logger.info(
            "Auth error on %s %s: %s (code=%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.code.value,
        )

        headers = None
        if status_code == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}

        return _create_error_response(
            status_code=status_code,
            message=exc.message,
            code=exc.code.value,
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Undecodable or incomplete bodies are invalid input, not 422."""
        logger.info(
            "Request validation failed on %s %s: %s",
            request.method,
            request.url.path,
            exc.errors(),
        )
        return _create_error_response(
            status_code=status.HTTP_400_BAD_REQUEST,
            message="Invalid request body",
            code=AuthErrorCode.INVALID_INPUT.value,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unhandled exceptions with consistent error format."""
        logger.exception(
            "Unhandled exception on %s %s: %s",
            request.method,
            request.url.path,
            exc,
        )
        return _create_error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="An internal error occurred",
            code=AuthErrorCode.INTERNAL_ERROR.value,
        )

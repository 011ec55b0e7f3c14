# auth_backend/errors.py
"""
Error taxonomy for the auth service.

Every error carries the HTTP status it maps to and the message shown to the
client. Services raise these; ``register_error_handlers`` renders them as
``{"error": message}``.
"""
import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("auth_backend.errors")


class AuthError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Email and password required"


class DuplicateEmail(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Email already exists"


class InvalidCredentials(AuthError):
    # same body for unknown email and wrong password
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials"


class InvalidToken(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid token"


class UserNotFound(AuthError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "User not found"


class InternalError(AuthError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"


class OAuthError(Exception):
    """Google reported a failure or the code exchange did not complete."""


async def handle_auth_error(request: Request, exc: AuthError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def handle_request_validation(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected malformed body on {request.url.path}")
    err = ValidationError("Invalid request body")
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, handle_auth_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)

"""
Application error taxonomy.

Every error carries the HTTP status and the public message rendered by the
exception handlers in ``estatehub.main``. Internal details stay in the logs.
"""

from typing import Any, Optional

from fastapi import status


class AppError(Exception):
    """Base class for errors rendered as ``{"success": false, ...}``."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Request failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[list[Any]] = None):
        self.message = message or self.message
        self.errors = errors
        super().__init__(self.message)


class BadRequest(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Bad request"


class ValidationFailed(BadRequest):
    message = "Validation failed"


class DuplicateEmail(BadRequest):
    message = "Email already registered"


class DuplicateUsername(BadRequest):
    message = "Username already taken"


class InvalidOrExpiredToken(BadRequest):
    message = "Invalid or expired reset token"


class AuthError(AppError):
    """Failures that must be answered with 401."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Authentication failed"


class InvalidCredentials(AuthError):
    message = "Invalid credentials"


class AccountDeactivated(AuthError):
    message = "Account is deactivated"


class MissingToken(AuthError):
    message = "Refresh token not provided"


class InvalidRefreshToken(AuthError):
    message = "Invalid refresh token"


class Unauthenticated(AuthError):
    message = "Authentication required"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Access denied. Insufficient permissions."


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource not found"


class UserNotFound(NotFound):
    message = "User not found"


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "An internal error occurred"

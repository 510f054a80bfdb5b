"""Application error taxonomy.

Every error raised by services derives from :class:`AppError`; the handlers
registered in :mod:`fintrack.main` turn them into the JSON error envelope.
"""
from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for errors that map onto an HTTP status and error code."""

    status_code: int = 500
    code: str = "INTERNAL_SERVER_ERROR"
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None, details: Any = None) -> None:
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing input."""

    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Validation failed."


class IncorrectCurrentPassword(ValidationError):
    code = "INCORRECT_CURRENT_PASSWORD"
    message = "Current password is incorrect"


class AuthenticationError(AppError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    code = "UNAUTHENTICATED"
    message = "Authentication required"


class InvalidToken(AuthenticationError):
    code = "INVALID_TOKEN"
    message = "Invalid or expired token"


class InvalidCredentials(AuthenticationError):
    """Raised for both unknown emails and wrong passwords."""

    code = "INVALID_CREDENTIALS"
    message = "Invalid email or password"


class AccountDeactivated(AuthenticationError):
    code = "ACCOUNT_DEACTIVATED"
    message = "Account is deactivated"


class InvalidOrExpiredRefreshToken(AuthenticationError):
    code = "INVALID_REFRESH_TOKEN"
    message = "Invalid or expired refresh token"


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Resource not found"


class UserNotFound(NotFound):
    code = "USER_NOT_FOUND"
    message = "User not found"


class TransactionNotFound(NotFound):
    """Also raised when the transaction exists but belongs to another user."""

    code = "TRANSACTION_NOT_FOUND"
    message = "Transaction not found"


class Conflict(AppError):
    status_code = 409
    code = "CONFLICT"
    message = "Resource conflict"


class EmailAlreadyExists(Conflict):
    code = "EMAIL_ALREADY_EXISTS"
    message = "Email already registered"


__all__ = [
    "AppError",
    "ValidationError",
    "IncorrectCurrentPassword",
    "AuthenticationError",
    "InvalidToken",
    "InvalidCredentials",
    "AccountDeactivated",
    "InvalidOrExpiredRefreshToken",
    "NotFound",
    "UserNotFound",
    "TransactionNotFound",
    "Conflict",
    "EmailAlreadyExists",
]

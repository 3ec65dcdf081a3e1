"""
Custom exceptions for the application.
"""

from typing import Any
from uuid import UUID


class AppError(Exception):
    """Base exception for application errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str = "APP_ERROR",
        details: Any | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details
        super().__init__(message)


class ValidationError(AppError):
    """Missing or malformed request data."""

    status_code = 400

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(message, "VALIDATION_ERROR", details)


class NotFoundError(AppError):
    """Requested entity does not exist."""

    status_code = 404

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(message, "NOT_FOUND", details)


class EntityNotFoundError(NotFoundError):
    """Entity looked up by primary key was not found."""

    def __init__(self, entity: str, identifier: str | UUID) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.identifier = identifier


class UpstreamServiceError(AppError):
    """A storage, telephony or language-model call failed."""

    status_code = 500

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(message, "UPSTREAM_ERROR", details)


# Authentication errors
class AuthenticationError(AppError):
    """Base authentication error."""

    status_code = 401

    def __init__(self, message: str = "Authentication failed", details: Any | None = None) -> None:
        super().__init__(message, "AUTHENTICATION_ERROR", details)


class InvalidTokenError(AuthenticationError):
    """Invalid or malformed token."""

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)
        self.code = "INVALID_TOKEN"


class TokenExpiredError(AuthenticationError):
    """Token has expired."""

    def __init__(self, message: str = "Token has expired") -> None:
        super().__init__(message)
        self.code = "TOKEN_EXPIRED"


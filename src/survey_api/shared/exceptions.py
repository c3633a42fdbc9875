"""
Application exception taxonomy.

Services raise these; the HTTP layer maps each one to a status code via
``status_code``. Storage-layer details never reach a caller through
``StorageError.message``.
"""

from typing import Any


class AppException(Exception):
    """Base exception for application errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "APP_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application exception.

        Args:
            message: Human-readable error message.
            code: Machine-readable error code.
            details: Additional error details.
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class NotFoundError(AppException):
    """Raised when a referenced survey, question, response or user does not exist."""

    status_code = 404

    def __init__(
        self,
        message: str = "Resource not found",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "NOT_FOUND", details)


class InvalidStateError(AppException):
    """Raised when a survey is not accepting responses."""

    status_code = 409

    def __init__(
        self,
        message: str = "Invalid state",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "INVALID_STATE", details)


class ConflictError(AppException):
    """Raised on duplicate submissions and duplicate account identifiers."""

    status_code = 409

    def __init__(
        self,
        message: str = "Conflict",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "CONFLICT", details)


class ValidationError(AppException):
    """Raised when business validation fails (distinct from pydantic ValidationError)."""

    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "VALIDATION_ERROR", details)


class PermissionDeniedError(AppException):
    """Raised when the caller does not own the resource it is acting on."""

    status_code = 403

    def __init__(
        self,
        message: str = "You don't have permission to access this resource",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "PERMISSION_DENIED", details)


class StorageError(AppException):
    """Raised when the store is unreachable or rejects a write for an unclassified reason."""

    status_code = 500

    def __init__(
        self,
        message: str = "Internal server error",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "STORAGE_ERROR", details)


class AuthenticationError(AppException):
    """Raised when authentication fails."""

    status_code = 401

    def __init__(
        self,
        message: str = "Authentication failed",
        code: str = "AUTH_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class TokenExpiredError(AuthenticationError):
    """Raised when a token has expired."""

    def __init__(self, message: str = "Token has expired") -> None:
        super().__init__(message, "TOKEN_EXPIRED")


class InvalidTokenError(AuthenticationError):
    """Raised when a token is invalid."""

    def __init__(
        self,
        message: str = "Invalid token",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "INVALID_TOKEN", details)


class AssistError(AppException):
    """Raised when the embedding or generation backend fails."""

    status_code = 502

    def __init__(
        self,
        message: str = "AI assist backend unavailable",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "ASSIST_ERROR", details)

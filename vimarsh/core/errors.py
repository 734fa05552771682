"""
Application error taxonomy.

Services raise these; the handlers registered in ``vimarsh.main`` render them
into the ``{"success": false, "message": ..., "errors": ...}`` envelope.
"""

from typing import Any, Optional

from fastapi import status


class AppError(Exception):
    """
    Base class for errors that map onto an HTTP response.

    Attributes:
        message: Human-readable message shown to the client.
        errors: Optional field -> message map for form highlighting.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.errors = errors or None
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        """Render the error as a response body."""
        payload: dict[str, Any] = {"success": False, "message": self.message}
        if self.errors:
            payload["errors"] = self.errors
        return payload


class BadRequestError(AppError):
    """Malformed or missing input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"


class UnauthorizedError(AppError):
    """Missing, invalid or expired credential."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class ForbiddenError(AppError):
    """Valid credential without the required role."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(AppError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppError):
    """Uniqueness violation."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource conflict"


class ServerError(AppError):
    """Upstream or store fault."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[dict[str, Any]] = None,
        detail: Optional[str] = None,
    ):
        super().__init__(message, errors)
        # Internal detail, only rendered when debug is enabled.
        self.detail = detail

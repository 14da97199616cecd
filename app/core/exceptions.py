"""
Application exception hierarchy and the DRF exception handler.

Services report expected failures through ServiceResult; views turn a failed
result into one of these exceptions and let the exception handler render it.
Every exception carries an ErrorCode and the HTTP status it maps to.

Exception Hierarchy:
    BaseApplicationError (base, INTERNAL / 500)
    ├── UnauthenticatedError - No resolved actor (401)
    ├── PermissionDeniedError - Actor lacks standing (403)
    ├── NotFoundError - Entity absent or already removed (404)
    ├── InvalidStateError - Operation inapplicable in current lifecycle state (400)
    ├── ConflictError - Uniqueness violation (409)
    └── BadRequestError - Malformed input (400)

Usage:
    result = MessageService.edit_message(request.user, pk, content)
    if not result:
        raise BaseApplicationError.from_result(result)

Configured in settings:
    REST_FRAMEWORK["EXCEPTION_HANDLER"] = "core.exceptions.application_exception_handler"
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.services import ErrorCode

if TYPE_CHECKING:
    from typing import Any

    from core.services import ServiceResult

logger = logging.getLogger(__name__)


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)
    """

    default_error_code: str = ErrorCode.INTERNAL
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    @classmethod
    def from_result(cls, result: ServiceResult) -> BaseApplicationError:
        """
        Build the exception matching a failed ServiceResult.

        Unknown error codes fall back to BadRequestError so a caller never
        sees a 500 for a failure the service anticipated.
        """
        exc_class = _EXCEPTIONS_BY_CODE.get(result.error_code, BadRequestError)
        return exc_class(
            result.error or "Request failed",
            error_code=result.error_code,
            details=result.errors,
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Edit window has expired",
                "error_code": "INVALID_STATE",
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["errors"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class UnauthenticatedError(BaseApplicationError):
    """Raised when no actor could be resolved for the request."""

    default_error_code = ErrorCode.UNAUTHENTICATED
    http_status = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the actor lacks standing for the operation.

    Use for:
    - Not an active participant of the conversation
    - Not the sender of the message
    - Not an admin of the group
    """

    default_error_code = ErrorCode.FORBIDDEN
    http_status = status.HTTP_403_FORBIDDEN


class NotFoundError(BaseApplicationError):
    """Raised when a requested entity does not exist."""

    default_error_code = ErrorCode.NOT_FOUND
    http_status = status.HTTP_404_NOT_FOUND


class InvalidStateError(BaseApplicationError):
    """
    Raised when the operation does not apply to the entity's current state.

    Use for:
    - Expired edit or delete-for-everyone window
    - Editing a non-text message
    - Marking your own message as read
    """

    default_error_code = ErrorCode.INVALID_STATE
    http_status = status.HTTP_400_BAD_REQUEST


class ConflictError(BaseApplicationError):
    """
    Raised when a uniqueness rule would be violated.

    Clients treat this as "already applied" (for example a duplicate reaction)
    and reconcile by issuing the inverse operation.
    """

    default_error_code = ErrorCode.CONFLICT
    http_status = status.HTTP_409_CONFLICT


class BadRequestError(BaseApplicationError):
    """Raised for malformed input (disallowed emoji, missing field)."""

    default_error_code = ErrorCode.BAD_REQUEST
    http_status = status.HTTP_400_BAD_REQUEST


_EXCEPTIONS_BY_CODE: dict[str, type[BaseApplicationError]] = {
    ErrorCode.UNAUTHENTICATED: UnauthenticatedError,
    ErrorCode.FORBIDDEN: PermissionDeniedError,
    ErrorCode.NOT_FOUND: NotFoundError,
    ErrorCode.INVALID_STATE: InvalidStateError,
    ErrorCode.CONFLICT: ConflictError,
    ErrorCode.BAD_REQUEST: BadRequestError,
    ErrorCode.INTERNAL: BaseApplicationError,
}


def application_exception_handler(exc, context):
    """
    DRF exception handler that renders BaseApplicationError subclasses.

    Anything else is delegated to DRF's default handler, which covers
    authentication (401), validation (400) and Http404.
    """
    if isinstance(exc, BaseApplicationError):
        if exc.http_status >= 500:
            logger.error(f"Unhandled application error: {exc!r}")
        return Response(exc.to_dict(), status=exc.http_status)

    return exception_handler(exc, context)

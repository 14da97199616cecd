"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ErrorCode: The closed set of failure categories every service reports
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with common service utilities

Service Layer Philosophy:
    Services encapsulate business logic separate from views and models.
    Views handle HTTP concerns, models handle data, services handle logic.

Pattern Comparison:
    - ServiceResult: Use for expected failures (membership, lifecycle rules)
    - Exceptions: Use for unexpected failures (database errors, bugs)

Usage:
    from core.services import BaseService, ErrorCode, ServiceResult

    class ReactionService(BaseService):
        @classmethod
        def react(cls, user, message_id, emoji) -> ServiceResult[MessageReaction]:
            if emoji not in REACTION_CONFIG.ALLOWED_EMOJIS:
                return ServiceResult.failure(
                    "Emoji is not allowed",
                    error_code=ErrorCode.BAD_REQUEST,
                )
            ...

    # In view
    result = ReactionService.react(request.user, message_id, emoji)
    if not result:
        return Response(result.to_response(), status=result.http_status)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction
from rest_framework import status

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

# Generic type for ServiceResult data
T = TypeVar("T")


class ErrorCode:
    """
    Machine-readable failure categories.

    Every failed ServiceResult carries exactly one of these codes so that
    transports (HTTP views, websocket consumers) can map failures without
    inspecting messages.
    """

    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    INVALID_STATE = "INVALID_STATE"
    CONFLICT = "CONFLICT"
    BAD_REQUEST = "BAD_REQUEST"
    INTERNAL = "INTERNAL"


ERROR_CODE_HTTP_STATUS: dict[str, int] = {
    ErrorCode.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_STATE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Provides consistent success/failure handling without exceptions.
    Use this for expected failures (membership checks, expired windows).

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: One of ErrorCode for client handling
        errors: Field-level errors for validation failures

    Usage:
        # Success case
        return ServiceResult.success(message)

        # Failure case
        return ServiceResult.failure("Edit window has expired", ErrorCode.INVALID_STATE)

        # Check result
        result = MessageService.edit_message(user, message_id, content)
        if result:
            message = result.data
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T = None) -> ServiceResult[T]:
        """
        Create a successful result.

        Args:
            data: The result data

        Returns:
            ServiceResult with success=True and data set
        """
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code (see ErrorCode)
            errors: Field-level errors (for validation failures)

        Returns:
            ServiceResult with success=False and error details

        Example:
            return ServiceResult.failure(
                "You are not a participant in this conversation",
                error_code=ErrorCode.FORBIDDEN,
            )
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code or ErrorCode.BAD_REQUEST,
            errors=errors,
        )

    @property
    def http_status(self) -> int:
        """HTTP status matching this result (200 on success)."""
        if self.success:
            return status.HTTP_200_OK
        return ERROR_CODE_HTTP_STATUS.get(
            self.error_code, status.HTTP_400_BAD_REQUEST
        )

    def to_response(self) -> dict[str, Any]:
        """
        Convert a failed result to the API error body.

        Returns:
            Dict with error message, error_code and optional field errors
        """
        response: dict[str, Any] = {
            "error": self.error,
            "error_code": self.error_code,
        }
        if self.errors:
            response["errors"] = self.errors
        return response

    def map(self, func) -> ServiceResult:
        """
        Transform the data if successful.

        Example:
            result = ReactionService.get_reactions(user, message_id)
            payload = result.map(lambda grouped: {"reactions": grouped})
        """
        if self.success:
            return ServiceResult.success(func(self.data))
        return self  # type: ignore

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management

    Design Notes:
        - Use @classmethod (no instance state)
        - Use ServiceResult for expected failures
        - Raise exceptions for unexpected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Example:
            with cls.atomic():
                message = Message.objects.create(...)
                Conversation.objects.filter(pk=...).update(last_message=message)
                # If the pointer update fails, the message insert is rolled back
        """
        with transaction.atomic():
            yield

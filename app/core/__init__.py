"""
Core Application - Infrastructure & Base Classes

This app contains infrastructure code shared by the domain apps
(authentication, chat, reels). It holds no domain logic.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling
    - ErrorCode: Failure categories shared by HTTP and websocket transports

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - PermissionDeniedError, NotFoundError, InvalidStateError,
      ConflictError, BadRequestError, UnauthenticatedError
    - application_exception_handler: DRF exception handler

OpenAPI (core.openapi):
    - group_endpoints: drf-spectacular postprocessing hook

Usage:
    from core.models import BaseModel
    from core.services import BaseService, ErrorCode, ServiceResult
    from core.exceptions import BaseApplicationError

Note:
    Django models are NOT imported here to avoid AppRegistryNotReady
    errors. Import them directly from their modules.
"""

from .services import BaseService, ErrorCode, ServiceResult

_EXCEPTION_NAMES = (
    "BadRequestError",
    "BaseApplicationError",
    "ConflictError",
    "InvalidStateError",
    "NotFoundError",
    "PermissionDeniedError",
    "UnauthenticatedError",
)


def __getattr__(name):
    # Exceptions import DRF, which must not load while INSTALLED_APPS is
    # being populated; resolve them lazily.
    if name in _EXCEPTION_NAMES:
        from . import exceptions

        return getattr(exceptions, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    # Services
    "BaseService",
    "ErrorCode",
    "ServiceResult",
    # Exceptions
    "BaseApplicationError",
    "BadRequestError",
    "ConflictError",
    "InvalidStateError",
    "NotFoundError",
    "PermissionDeniedError",
    "UnauthenticatedError",
]

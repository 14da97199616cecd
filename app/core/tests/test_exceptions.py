"""
Tests for ServiceResult and the application exception handler.

Verifies:
- ErrorCode to HTTP status mapping in one place
- BaseApplicationError.from_result picks the matching subclass
- application_exception_handler renders {"error", "error_code"[, "errors"]}
  and delegates everything else to DRF
"""

import pytest
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated

from core.exceptions import (
    BadRequestError,
    BaseApplicationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    UnauthenticatedError,
    application_exception_handler,
)
from core.services import ErrorCode, ServiceResult


class TestServiceResult:
    def test_success_is_truthy(self):
        result = ServiceResult.success({"id": 1})

        assert result
        assert result.data == {"id": 1}
        assert result.http_status == status.HTTP_200_OK

    def test_failure_is_falsy_and_defaults_to_bad_request(self):
        result = ServiceResult.failure("nope")

        assert not result
        assert result.error_code == ErrorCode.BAD_REQUEST

    @pytest.mark.parametrize(
        "code, http_status",
        [
            (ErrorCode.UNAUTHENTICATED, 401),
            (ErrorCode.FORBIDDEN, 403),
            (ErrorCode.NOT_FOUND, 404),
            (ErrorCode.INVALID_STATE, 400),
            (ErrorCode.CONFLICT, 409),
            (ErrorCode.BAD_REQUEST, 400),
            (ErrorCode.INTERNAL, 500),
        ],
    )
    def test_http_status_mapping(self, code, http_status):
        assert ServiceResult.failure("x", error_code=code).http_status == http_status

    def test_to_response_includes_field_errors_only_when_present(self):
        plain = ServiceResult.failure("Gone", error_code=ErrorCode.NOT_FOUND)
        detailed = ServiceResult.failure(
            "Bad emoji", error_code=ErrorCode.BAD_REQUEST, errors={"emoji": ["not allowed"]}
        )

        assert plain.to_response() == {"error": "Gone", "error_code": "NOT_FOUND"}
        assert detailed.to_response()["errors"] == {"emoji": ["not allowed"]}

    def test_map_transforms_only_success(self):
        assert ServiceResult.success(2).map(lambda x: x * 10).data == 20

        failure = ServiceResult.failure("x", error_code=ErrorCode.CONFLICT)
        assert failure.map(lambda x: x * 10) is failure


class TestFromResult:
    @pytest.mark.parametrize(
        "code, exc_class",
        [
            (ErrorCode.UNAUTHENTICATED, UnauthenticatedError),
            (ErrorCode.FORBIDDEN, PermissionDeniedError),
            (ErrorCode.NOT_FOUND, NotFoundError),
            (ErrorCode.INVALID_STATE, InvalidStateError),
            (ErrorCode.CONFLICT, ConflictError),
            (ErrorCode.BAD_REQUEST, BadRequestError),
        ],
    )
    def test_picks_matching_exception(self, code, exc_class):
        exc = BaseApplicationError.from_result(ServiceResult.failure("x", error_code=code))

        assert type(exc) is exc_class
        assert exc.error_code == code

    def test_unknown_code_falls_back_to_bad_request(self):
        exc = BaseApplicationError.from_result(ServiceResult.failure("x", error_code="WEIRD"))

        assert isinstance(exc, BadRequestError)
        assert exc.http_status == status.HTTP_400_BAD_REQUEST


class TestExceptionHandler:
    def test_renders_application_error(self):
        exc = InvalidStateError("Edit time window has expired")

        response = application_exception_handler(exc, {})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data == {
            "error": "Edit time window has expired",
            "error_code": ErrorCode.INVALID_STATE,
        }

    def test_includes_details_as_errors(self):
        exc = BadRequestError("user_id must be an integer", details={"user_id": ["invalid"]})

        response = application_exception_handler(exc, {})

        assert response.data["errors"] == {"user_id": ["invalid"]}

    def test_internal_error_is_500(self):
        response = application_exception_handler(BaseApplicationError("boom"), {})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data["error_code"] == ErrorCode.INTERNAL

    def test_delegates_drf_exceptions(self):
        response = application_exception_handler(NotAuthenticated(), {})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_unrelated_exception_is_not_handled(self):
        assert application_exception_handler(ValueError("x"), {}) is None

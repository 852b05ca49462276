from __future__ import annotations

import pytest

from passage_neobank.exceptions import (
    EnvelopeFormatError,
    PassageAuthenticationError,
    PassageAuthorizationError,
    PassageConflictError,
    PassageCryptoError,
    PassageError,
    PassageNetworkError,
    PassageNotFoundError,
    PassageRateLimitError,
    PassageTimeoutError,
    PassageValidationError,
    create_error_from_response,
)


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (401, PassageAuthenticationError),
        (403, PassageAuthorizationError),
        (404, PassageNotFoundError),
        (409, PassageConflictError),
        (429, PassageRateLimitError),
    ],
)
def test_status_mapping(status: int, expected: type[PassageError]) -> None:
    error = create_error_from_response(status, {"message": "nope", "requestId": "req_1"})
    assert type(error) is expected
    assert error.status_code == status
    assert error.message == "nope"
    assert error.request_id == "req_1"


def test_validation_error_details() -> None:
    body = {
        "error": "VALIDATION_ERROR",
        "message": "Invalid request",
        "details": [
            {"field": "amount", "message": "must be positive"},
            {"field": "amount", "message": "must be an integer"},
            {"field": "email", "message": "invalid"},
        ],
    }

    error = create_error_from_response(400, body)

    assert isinstance(error, PassageValidationError)
    assert error.has_code("VALIDATION_ERROR")
    assert error.get_field_errors("amount") == ["must be positive", "must be an integer"]
    assert error.has_field_error("email")
    assert not error.has_field_error("name")
    assert error.get_field_errors("name") == []


def test_validation_error_legacy_fields() -> None:
    error = create_error_from_response(400, {"message": "Invalid", "fields": {"ssn": ["required"]}})
    assert isinstance(error, PassageValidationError)
    assert error.get_field_errors("ssn") == ["required"]


def test_plain_bad_request() -> None:
    error = create_error_from_response(400, {"message": "Malformed body"})
    assert type(error) is PassageError
    assert error.has_code("BAD_REQUEST")
    assert error.is_client_error


def test_server_error() -> None:
    error = create_error_from_response(503, {"error": "SERVICE_UNAVAILABLE", "message": "Try later"})
    assert error.is_server_error
    assert error.is_retryable
    assert error.has_code("SERVICE_UNAVAILABLE")
    assert error.details == {"error": "SERVICE_UNAVAILABLE", "message": "Try later"}


def test_unknown_status_without_body() -> None:
    error = create_error_from_response(418, None)
    assert error.message == "Unknown error"
    assert error.has_code("HTTP_418")
    assert not error.is_retryable


def test_rate_limit_retry_after() -> None:
    error = create_error_from_response(429, {}, retry_after=7.0)
    assert isinstance(error, PassageRateLimitError)
    assert error.retry_after == 7.0
    assert error.is_retryable


def test_retryability_without_status() -> None:
    assert PassageNetworkError().is_retryable
    assert PassageTimeoutError().is_retryable
    assert isinstance(PassageTimeoutError(), PassageNetworkError)
    assert PassageTimeoutError().has_code("TIMEOUT")
    assert not PassageCryptoError("x").is_retryable
    assert not EnvelopeFormatError("x").is_retryable
    assert not PassageNotFoundError("x").is_retryable

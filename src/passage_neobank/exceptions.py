"""Custom exception hierarchy for passage_neobank."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class PassageError(Exception):
    """Base exception for all passage_neobank errors.

    Parameters
    ----------
    message : str
        Human readable description.
    status_code : int or None
        HTTP status code, when the error came from an HTTP response.
    error_code : str or None
        API error code (e.g. ``"NOT_FOUND"``, ``"VALIDATION_ERROR"``).
    request_id : str or None
        Request ID reported by the API, useful for support.
    details : Any
        Original error payload from the API.
    """

    #: Whether an error without an HTTP status (network failure, unknown
    #: exception) may be retried.
    _RETRY_WITHOUT_STATUS: bool = True

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error_code: str | None = None,
        request_id: str | None = None,
        details: Any = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.request_id = request_id
        self.details = details
        super().__init__(message)

    def has_code(self, error_code: str) -> bool:
        """Return ``True`` when this error carries *error_code*."""
        return self.error_code == error_code

    @property
    def is_retryable(self) -> bool:
        """Whether retrying the same request can succeed (5xx, 429, network)."""
        if self.status_code is None:
            return self._RETRY_WITHOUT_STATUS
        return self.status_code >= 500 or self.status_code == 429

    @property
    def is_client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        return self.status_code is not None and self.status_code >= 500


class PassageConfigError(PassageError):
    """Invalid or missing configuration."""

    _RETRY_WITHOUT_STATUS = False


# ---------------------------------------------------------------------------
# Crypto layer
# ---------------------------------------------------------------------------


class PassageCryptoError(PassageError):
    """Encryption or decryption failure.

    Crypto operations are deterministic over their inputs, so these errors
    are never retried.
    """

    _RETRY_WITHOUT_STATUS = False


class InvalidKeyError(PassageCryptoError):
    """A PEM key could not be loaded or is not an RSA key."""


class EnvelopeFormatError(PassageCryptoError):
    """Envelope or packed document is structurally invalid.

    Raised for malformed JSON, missing or non-string fields, invalid
    base64 and wrong nonce/tag lengths.
    """


class EnvelopeDecryptionError(PassageCryptoError):
    """Envelope is well formed but cannot be decrypted.

    Raised when the wrapped key does not belong to the supplied private
    key, or when the AES-GCM authentication tag does not match (tampering
    or corruption).
    """


class PIIEncryptionError(PassageCryptoError):
    """PII could not be encrypted for one or more lenders.

    Every lender is processed independently; the payloads that were
    produced are available on :attr:`payloads` and the per-lender failure
    messages on :attr:`failures`.
    """

    def __init__(
        self,
        message: str,
        *,
        payloads: list[Any],
        failures: Mapping[str, str],
    ) -> None:
        self.payloads = payloads
        self.failures = dict(failures)
        super().__init__(message)


# ---------------------------------------------------------------------------
# Webhooks
# ---------------------------------------------------------------------------


class WebhookSignatureError(PassageError):
    """Webhook signature verification failed.

    Callers should answer these with ``401`` and must not trust the body.
    """

    _RETRY_WITHOUT_STATUS = False

    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="WEBHOOK_SIGNATURE_INVALID")


class MissingSignatureError(WebhookSignatureError):
    """The signature header was empty."""


class MalformedSignatureError(WebhookSignatureError):
    """The signature header lacks a ``t=`` or ``v1=`` component."""


class TimestampOutOfToleranceError(WebhookSignatureError):
    """The signed timestamp is outside the replay window."""


class SignatureMismatchError(WebhookSignatureError):
    """The HMAC digest does not match the payload."""


class WebhookPayloadError(PassageError):
    """An authenticated webhook body is not a valid event."""

    _RETRY_WITHOUT_STATUS = False


# ---------------------------------------------------------------------------
# HTTP layer
# ---------------------------------------------------------------------------


class PassageValidationError(PassageError):
    """Request rejected with field-level validation errors (HTTP 400)."""

    def __init__(
        self,
        message: str,
        fields: Mapping[str, list[str]] | None = None,
        *,
        request_id: str | None = None,
        details: Any = None,
    ) -> None:
        self.fields: dict[str, list[str]] = dict(fields or {})
        super().__init__(
            message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            request_id=request_id,
            details=details,
        )

    def get_field_errors(self, field: str) -> list[str]:
        return self.fields.get(field, [])

    def has_field_error(self, field: str) -> bool:
        return bool(self.fields.get(field))


class PassageAuthenticationError(PassageError):
    """Invalid or expired API key (HTTP 401)."""

    def __init__(self, message: str = "Invalid or expired API key", *, request_id: str | None = None) -> None:
        super().__init__(message, status_code=401, error_code="AUTHENTICATION_ERROR", request_id=request_id)


class PassageAuthorizationError(PassageError):
    """Insufficient permissions for this action (HTTP 403)."""

    def __init__(
        self,
        message: str = "Insufficient permissions for this action",
        *,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message, status_code=403, error_code="AUTHORIZATION_ERROR", request_id=request_id)


class PassageNotFoundError(PassageError):
    """Resource not found (HTTP 404)."""

    def __init__(
        self,
        message: str,
        *,
        resource_type: str | None = None,
        resource_id: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message, status_code=404, error_code="NOT_FOUND", request_id=request_id)


class PassageConflictError(PassageError):
    """Duplicate resource or invalid state transition (HTTP 409)."""

    def __init__(self, message: str, *, request_id: str | None = None) -> None:
        super().__init__(message, status_code=409, error_code="CONFLICT", request_id=request_id)


class PassageRateLimitError(PassageError):
    """Rate limit exceeded (HTTP 429).

    ``retry_after`` is the number of seconds the server asked us to wait,
    when it said so.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        retry_after: float | None = None,
        request_id: str | None = None,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(message, status_code=429, error_code="RATE_LIMIT_EXCEEDED", request_id=request_id)


class PassageNetworkError(PassageError):
    """Network or connection failure (no HTTP response)."""

    def __init__(self, message: str = "Network error") -> None:
        super().__init__(message, error_code="NETWORK_ERROR")


class PassageTimeoutError(PassageNetworkError):
    """Request timed out."""

    def __init__(self, message: str = "Request timed out") -> None:
        PassageError.__init__(self, message, error_code="TIMEOUT")


def _validation_fields(body: Mapping[str, Any]) -> dict[str, list[str]] | None:
    details = body.get("details")
    if isinstance(details, list):
        fields: dict[str, list[str]] = {}
        for detail in details:
            if not isinstance(detail, Mapping):
                continue
            field = str(detail.get("field", ""))
            fields.setdefault(field, []).append(str(detail.get("message", "")))
        return fields
    legacy = body.get("fields")
    if isinstance(legacy, Mapping):
        return {str(k): [str(m) for m in v] for k, v in legacy.items() if isinstance(v, list)}
    return None


def create_error_from_response(
    status_code: int,
    body: Mapping[str, Any] | None,
    *,
    retry_after: float | None = None,
) -> PassageError:
    """Map an API error response to the matching :class:`PassageError`.

    The API reports errors as::

        {"error": "NOT_FOUND", "message": "...", "status": 404,
         "requestId": "req_...", "details": [{"field": "x", "message": "..."}]}

    Parameters
    ----------
    status_code : int
        HTTP status code.
    body : Mapping or None
        Decoded JSON error body, if any.
    retry_after : float or None
        Value of the ``Retry-After`` header, for 429 responses.

    Returns
    -------
    PassageError
        The most specific error subclass for the status.
    """
    body = body or {}
    message = str(body.get("message") or body.get("error") or "Unknown error")
    request_id = body.get("requestId")
    error_code = body.get("error") or body.get("code")

    if status_code == 400:
        fields = _validation_fields(body)
        if fields is not None or error_code == "VALIDATION_ERROR":
            return PassageValidationError(message, fields, request_id=request_id, details=body.get("details"))
        return PassageError(
            message,
            status_code=400,
            error_code=error_code or "BAD_REQUEST",
            request_id=request_id,
        )
    if status_code == 401:
        return PassageAuthenticationError(message, request_id=request_id)
    if status_code == 403:
        return PassageAuthorizationError(message, request_id=request_id)
    if status_code == 404:
        return PassageNotFoundError(message, request_id=request_id)
    if status_code == 409:
        return PassageConflictError(message, request_id=request_id)
    if status_code == 429:
        return PassageRateLimitError(message, retry_after=retry_after, request_id=request_id)
    return PassageError(
        message,
        status_code=status_code,
        error_code=error_code or f"HTTP_{status_code}",
        request_id=request_id,
        details=dict(body),
    )

"""Webhook signature verification and event parsing.

Passage signs every webhook with HMAC-SHA256 over ``"{timestamp}.{body}"``
and sends ``x-passage-signature: t=<unix-seconds>,v1=<hex digest>``.
Pass the raw body exactly as received: any re-serialization (whitespace,
key order) breaks the signature.

Usage::

    handler = WebhookHandler(secret=os.environ["PASSAGE_WEBHOOK_SECRET"])
    try:
        event = handler.construct_event(body, request.headers[SIGNATURE_HEADER])
    except WebhookSignatureError:
        return Response(status=401)
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any

from pydantic import ValidationError

from passage_neobank._constants import DEFAULT_WEBHOOK_TOLERANCE, SIGNATURE_HEADER
from passage_neobank.config import PassageConfig
from passage_neobank.crypto.hashing import constant_time_equals, hmac_sha256_hex
from passage_neobank.exceptions import (
    MalformedSignatureError,
    MissingSignatureError,
    PassageConfigError,
    SignatureMismatchError,
    TimestampOutOfToleranceError,
    WebhookPayloadError,
)
from passage_neobank.models.webhook import WebhookEvent

_logger = logging.getLogger(__name__)

__all__ = ["SIGNATURE_HEADER", "WebhookHandler"]

_MAX_TIMESTAMP_DIGITS = 15


def _signed_payload(timestamp: str, payload: str | bytes) -> bytes:
    body = payload.encode("utf-8") if isinstance(payload, str) else bytes(payload)
    return timestamp.encode("ascii") + b"." + body


def _parse_signature_header(signature: str) -> tuple[str, str]:
    timestamp: str | None = None
    digest: str | None = None
    for part in signature.split(","):
        item = part.strip()
        if timestamp is None and item.startswith("t="):
            timestamp = item[2:]
        elif digest is None and item.startswith("v1="):
            digest = item[3:]

    if not timestamp or not digest:
        raise MalformedSignatureError("Invalid signature format")
    if not (timestamp.isascii() and timestamp.isdigit()) or len(timestamp) > _MAX_TIMESTAMP_DIGITS:
        raise MalformedSignatureError("Invalid signature format: timestamp is not an integer")
    return timestamp, digest


class WebhookHandler:
    """Verify and parse Passage webhooks.

    Parameters
    ----------
    secret : str
        Webhook signing secret (``whsec_...``).
    tolerance : int
        Maximum allowed distance, in seconds, between the signed timestamp
        and the local clock, in either direction. Defaults to 300.
    """

    def __init__(self, secret: str, *, tolerance: int = DEFAULT_WEBHOOK_TOLERANCE) -> None:
        if not secret:
            raise PassageConfigError("WebhookHandler: secret is required")
        if tolerance < 0:
            raise PassageConfigError(f"WebhookHandler: tolerance must be >= 0, got {tolerance}")
        self._secret = secret
        self._tolerance = tolerance

    @classmethod
    def from_config(cls, config: PassageConfig) -> WebhookHandler:
        if not config.webhook_secret:
            raise PassageConfigError("webhook_secret is not configured")
        return cls(config.webhook_secret, tolerance=config.webhook_tolerance)

    @property
    def tolerance(self) -> int:
        return self._tolerance

    def verify_signature(self, payload: str | bytes, signature: str, *, now: float | None = None) -> None:
        """Verify a webhook signature header against the raw body.

        Parameters
        ----------
        payload : str or bytes
            Raw request body.
        signature : str
            Value of the ``x-passage-signature`` header.
        now : float or None
            Current unix time; defaults to :func:`time.time`.

        Raises
        ------
        MissingSignatureError
            If the header is empty.
        MalformedSignatureError
            If ``t=`` or ``v1=`` is missing, or ``t`` is not an integer of
            at most 15 digits.
        TimestampOutOfToleranceError
            If the timestamp is outside the replay window.
        SignatureMismatchError
            If the digest does not match.
        """
        if not signature:
            raise MissingSignatureError("Missing signature header")

        timestamp, supplied_hex = _parse_signature_header(signature)

        current = int(time.time() if now is None else now)
        if abs(current - int(timestamp)) > self._tolerance:
            _logger.debug("Webhook timestamp %s outside tolerance (now=%d)", timestamp, current)
            raise TimestampOutOfToleranceError("Timestamp outside tolerance window")

        expected = bytes.fromhex(hmac_sha256_hex(self._secret, _signed_payload(timestamp, payload)))
        try:
            supplied = bytes.fromhex(supplied_hex)
        except ValueError:
            supplied = b""

        if not constant_time_equals(supplied, expected):
            raise SignatureMismatchError("Signature verification failed")

    def construct_event(self, payload: str | bytes, signature: str, *, now: float | None = None) -> WebhookEvent:
        """Verify the signature, then parse the body into a :class:`WebhookEvent`.

        The body is never parsed before it has been authenticated.

        Raises
        ------
        WebhookSignatureError
            If verification fails (see :meth:`verify_signature`).
        WebhookPayloadError
            If the authenticated body is not a valid event.
        """
        self.verify_signature(payload, signature, now=now)

        try:
            raw: Any = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise WebhookPayloadError("Webhook body is not valid JSON") from exc
        if not isinstance(raw, dict):
            raise WebhookPayloadError("Webhook body must be a JSON object")

        try:
            event = WebhookEvent.model_validate(raw)
        except ValidationError as exc:
            raise WebhookPayloadError(f"Webhook body is not a valid event: {exc}") from exc

        _logger.debug("Verified webhook %s (%s)", event.id, event.event_name)
        return event

    def generate_test_signature_header(self, payload: str | bytes, *, timestamp: int | None = None) -> str:
        """Sign *payload* the way Passage does, for test fixtures.

        Parameters
        ----------
        payload : str or bytes
            The exact body that will be sent.
        timestamp : int or None
            Unix seconds to sign; defaults to now.

        Returns
        -------
        str
            ``t=<timestamp>,v1=<hex digest>``.
        """
        ts = str(int(time.time()) if timestamp is None else int(timestamp))
        digest = hmac_sha256_hex(self._secret, _signed_payload(ts, payload))
        return f"t={ts},v1={digest}"

    def generate_test_headers(self, payload: str | bytes) -> dict[str, str]:
        """Headers carrying a fresh signature for *payload*."""
        return {SIGNATURE_HEADER: self.generate_test_signature_header(payload)}

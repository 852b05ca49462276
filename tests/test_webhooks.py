from __future__ import annotations

import hashlib
import hmac
import json

import pytest

from passage_neobank.config import PassageConfig
from passage_neobank.exceptions import (
    MalformedSignatureError,
    MissingSignatureError,
    PassageConfigError,
    SignatureMismatchError,
    TimestampOutOfToleranceError,
    WebhookPayloadError,
    WebhookSignatureError,
)
from passage_neobank.models.webhook import WebhookEventType
from passage_neobank.webhooks import SIGNATURE_HEADER, WebhookHandler

SECRET = "whsec_test_secret"
NOW = 1_700_000_000
BODY = json.dumps(
    {
        "id": "evt_123",
        "event": "offer.received",
        "timestamp": "2026-10-19T12:00:00Z",
        "data": {"applicationId": "app_1", "offerId": "off_1"},
        "correlationId": "corr_1",
    }
)


def _sign(body: str, timestamp: int, secret: str = SECRET) -> str:
    digest = hmac.new(secret.encode(), f"{timestamp}.{body}".encode(), hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


@pytest.fixture
def handler() -> WebhookHandler:
    return WebhookHandler(SECRET)


def test_valid_signature(handler: WebhookHandler) -> None:
    handler.verify_signature(BODY, _sign(BODY, NOW), now=NOW)
    handler.verify_signature(BODY.encode(), _sign(BODY, NOW), now=NOW)


def test_header_parts_may_be_reordered_and_spaced(handler: WebhookHandler) -> None:
    t_part, v1_part = _sign(BODY, NOW).split(",")
    handler.verify_signature(BODY, f" {v1_part} , {t_part} ", now=NOW)


@pytest.mark.parametrize("skew", [-300, 0, 300])
def test_within_tolerance(handler: WebhookHandler, skew: int) -> None:
    handler.verify_signature(BODY, _sign(BODY, NOW + skew), now=NOW)


@pytest.mark.parametrize("skew", [-301, 301, -86_400])
def test_outside_tolerance(handler: WebhookHandler, skew: int) -> None:
    with pytest.raises(TimestampOutOfToleranceError, match="Timestamp outside tolerance window"):
        handler.verify_signature(BODY, _sign(BODY, NOW + skew), now=NOW)


def test_custom_tolerance() -> None:
    handler = WebhookHandler(SECRET, tolerance=10)
    assert handler.tolerance == 10
    with pytest.raises(TimestampOutOfToleranceError):
        handler.verify_signature(BODY, _sign(BODY, NOW - 11), now=NOW)


def test_missing_header(handler: WebhookHandler) -> None:
    with pytest.raises(MissingSignatureError, match="Missing signature header"):
        handler.verify_signature(BODY, "", now=NOW)


@pytest.mark.parametrize(
    "header",
    ["garbage", f"t={NOW}", "v1=abcd", "t=,v1=abcd", f"t={NOW},v1=", "t=soon,v1=abcd"],
)
def test_malformed_header(handler: WebhookHandler, header: str) -> None:
    with pytest.raises(MalformedSignatureError):
        handler.verify_signature(BODY, header, now=NOW)


def test_body_modified(handler: WebhookHandler) -> None:
    header = _sign(BODY, NOW)
    with pytest.raises(SignatureMismatchError, match="Signature verification failed"):
        handler.verify_signature(BODY.replace("off_1", "off_2"), header, now=NOW)


def test_wrong_secret(handler: WebhookHandler) -> None:
    with pytest.raises(SignatureMismatchError):
        handler.verify_signature(BODY, _sign(BODY, NOW, secret="whsec_other"), now=NOW)


def test_replayed_signature_with_new_timestamp(handler: WebhookHandler) -> None:
    _, v1_part = _sign(BODY, NOW - 1000).split(",")
    with pytest.raises(SignatureMismatchError):
        handler.verify_signature(BODY, f"t={NOW},{v1_part}", now=NOW)


@pytest.mark.parametrize("digest", ["zz" * 32, "abcd", "0" * 64])
def test_bad_digest_is_a_mismatch(handler: WebhookHandler, digest: str) -> None:
    with pytest.raises(SignatureMismatchError):
        handler.verify_signature(BODY, f"t={NOW},v1={digest}", now=NOW)


def test_all_failures_share_error_code(handler: WebhookHandler) -> None:
    with pytest.raises(WebhookSignatureError) as exc_info:
        handler.verify_signature(BODY, "", now=NOW)
    assert exc_info.value.has_code("WEBHOOK_SIGNATURE_INVALID")
    assert not exc_info.value.is_retryable


def test_construct_event(handler: WebhookHandler) -> None:
    event = handler.construct_event(BODY, _sign(BODY, NOW), now=NOW)

    assert event.id == "evt_123"
    assert event.event is WebhookEventType.OFFER_RECEIVED
    assert event.event_name == "offer.received"
    assert event.correlation_id == "corr_1"
    assert event.data == {"applicationId": "app_1", "offerId": "off_1"}
    assert event.raw["id"] == "evt_123"


def test_construct_event_unknown_type(handler: WebhookHandler) -> None:
    body = json.dumps({"id": "evt_9", "eventType": "loan.refinanced", "timestamp": "2026-10-19T12:00:00Z"})
    event = handler.construct_event(body, _sign(body, NOW), now=NOW)

    assert event.event is WebhookEventType.UNKNOWN
    assert event.event_name == "loan.refinanced"


def test_construct_event_verifies_before_parsing(handler: WebhookHandler) -> None:
    with pytest.raises(SignatureMismatchError):
        handler.construct_event("{not json", f"t={NOW},v1={'0' * 64}", now=NOW)


@pytest.mark.parametrize("body", ["{not json", "[1, 2]", json.dumps({"event": "test"})])
def test_construct_event_invalid_body(handler: WebhookHandler, body: str) -> None:
    with pytest.raises(WebhookPayloadError):
        handler.construct_event(body, _sign(body, NOW), now=NOW)


def test_generated_headers_verify(handler: WebhookHandler) -> None:
    header = handler.generate_test_signature_header(BODY, timestamp=NOW)
    assert header == _sign(BODY, NOW)
    handler.verify_signature(BODY, header, now=NOW)

    headers = handler.generate_test_headers(BODY)
    assert set(headers) == {SIGNATURE_HEADER}
    handler.verify_signature(BODY, headers[SIGNATURE_HEADER])


def test_invalid_construction() -> None:
    with pytest.raises(PassageConfigError):
        WebhookHandler("")
    with pytest.raises(PassageConfigError):
        WebhookHandler(SECRET, tolerance=-1)


def test_from_config() -> None:
    handler = WebhookHandler.from_config(PassageConfig(api_key="nb_test_x", webhook_secret=SECRET, webhook_tolerance=60))
    assert handler.tolerance == 60
    handler.verify_signature(BODY, _sign(BODY, NOW), now=NOW)

    with pytest.raises(PassageConfigError):
        WebhookHandler.from_config(PassageConfig(api_key="nb_test_x"))


@pytest.mark.parametrize("digits", [16, 5000])
def test_oversized_timestamp_is_malformed(handler: WebhookHandler, digits: int) -> None:
    with pytest.raises(MalformedSignatureError):
        handler.verify_signature("{}", f"t={'9' * digits},v1={'0' * 64}", now=NOW)

from __future__ import annotations

import pytest
from pydantic import ValidationError

from passage_neobank.models import (
    DecryptedOfferDetails,
    EncryptedPIIPayload,
    HybridEncryptedPayload,
    SdxDocumentType,
    SdxUploadResult,
    WebhookEvent,
    WebhookEventType,
)


def test_offer_details_split_known_and_additional_fields() -> None:
    details = DecryptedOfferDetails.from_payload(
        {
            "apr": 7.25,
            "term": 24,
            "monthlyPayment": "$450.00",
            "originationFee": 100,
            "prepaymentPenalty": False,
            "lenderNotes": "fast funding",
            "rateLock": {"days": 30},
        }
    )

    assert details.apr == "7.25"
    assert details.origination_fee == "100"
    assert details.term == 24
    assert details.prepayment_penalty is False
    assert details.additional_fields == {"lenderNotes": "fast funding", "rateLock": {"days": 30}}


def test_offer_details_term_months_is_a_lender_extension() -> None:
    details = DecryptedOfferDetails.from_payload({"term": 12, "termMonths": 36})
    assert details.term == 12
    assert details.additional_fields == {"termMonths": 36}


def test_offer_details_keeps_mistyped_known_fields() -> None:
    details = DecryptedOfferDetails.from_payload({"apr": True, "fees": ["flat", 25], "monthlyPayment": "$99.00"})

    assert details.apr is None
    assert details.fees is None
    assert details.monthly_payment == "$99.00"
    assert details.additional_fields == {"apr": True, "fees": ["flat", 25]}


def test_envelope_wire_round_trip() -> None:
    payload = HybridEncryptedPayload(encrypted_data="ZGF0YQ==", encrypted_key="a2V5", iv="aXY=", auth_tag="dGFn")
    wrapped = EncryptedPIIPayload(lender_id="lender_1", encrypted_data=payload.to_json())

    assert payload.to_wire() == {"encryptedData": "ZGF0YQ==", "encryptedKey": "a2V5", "iv": "aXY=", "authTag": "dGFn"}
    assert wrapped.envelope() == payload


def test_envelope_fields_must_be_strings() -> None:
    with pytest.raises(ValidationError):
        HybridEncryptedPayload.model_validate({"encryptedData": 1, "encryptedKey": "", "iv": "", "authTag": ""})


def test_unknown_enum_values_fall_back() -> None:
    assert SdxDocumentType("passport") is SdxDocumentType.UNKNOWN
    assert SdxDocumentType.UNKNOWN.value == "other"
    assert WebhookEventType("something.new") is WebhookEventType.UNKNOWN


def test_upload_result_optional_fields() -> None:
    result = SdxUploadResult.model_validate({"documentHandle": "doc_1", "expiresAt": "2026-10-20T00:00:00Z"})
    assert result.blob_size is None
    assert result.duplicate is None


def test_webhook_event_keeps_raw_body() -> None:
    body = {"id": "evt_1", "event": "funding.completed", "timestamp": "t", "data": {"amount": "100"}, "extra": 1}
    event = WebhookEvent.model_validate(body)

    assert event.event is WebhookEventType.FUNDING_COMPLETED
    assert event.raw == body

"""Webhook event models."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, model_validator

from passage_neobank.models._base import PassageEnum, PassageModel


class WebhookEventType(PassageEnum):
    """Event types pushed by the Passage API."""

    UNKNOWN = "unknown"

    APPLICATION_CREATED = "application.created"
    APPLICATION_ROUTED = "application.routed"
    APPLICATION_APPROVED = "application.approved"
    APPLICATION_REJECTED = "application.rejected"
    APPLICATION_DECLINED = "application.declined"

    OFFER_RECEIVED = "offer.received"
    OFFER_ACCEPTED = "offer.accepted"
    OFFER_REJECTED = "offer.rejected"
    PREQUAL_OFFER_RECEIVED = "prequal_offer.received"
    PREQUAL_OFFER_ACCEPTED = "prequal_offer.accepted"
    FINAL_OFFER_RECEIVED = "final_offer.received"
    FINAL_OFFER_REQUIRED = "final_offer.required"
    FINAL_OFFER_ACCEPTED = "final_offer.accepted"

    ESIGN_REQUIRED = "esign.required"
    ESIGN_COMPLETED = "esign.completed"
    SIGNING_READY = "signing.ready"
    SIGNING_COMPLETED = "signing.completed"

    KYC_ATTESTATION_AVAILABLE = "kyc.attestation_available"

    FUNDING_INITIATED = "funding.initiated"
    FUNDING_COMPLETED = "funding.completed"
    FUNDING_FAILED = "funding.failed"
    FUNDING_REQUIRED = "funding.required"
    FUNDING_DISBURSING = "funding.disbursing"
    FUNDING_DISBURSED = "funding.disbursed"
    FUNDING_DECLINED = "funding.declined"
    FUNDING_INSUFFICIENT_BALANCE = "funding.insufficient_balance"

    LOAN_CREATED = "loan.created"
    LOAN_CREATION_FAILED = "loan.creation_failed"
    LOAN_REPAYMENT_ADDRESS_READY = "loan.repayment_address_ready"
    LOAN_REPAYMENT_RECEIVED = "loan.repayment_received"
    LOAN_PAID_OFF = "loan.paid_off"
    LOAN_STATUS_CHANGED = "loan.status_changed"
    LOAN_INFRASTRUCTURE_FAILED = "loan.infrastructure_failed"

    WALLET_VERIFICATION_INITIATED = "wallet.verification.initiated"
    WALLET_VERIFICATION_COMPLETED = "wallet.verification.completed"
    WALLET_VERIFICATION_FAILED = "wallet.verification.failed"
    WALLET_VERIFICATION_EXPIRED = "wallet.verification.expired"
    WALLET_VERIFICATION_REVOKED = "wallet.verification.revoked"

    TEST = "test"


class WebhookEvent(PassageModel):
    """A verified webhook event.

    Only produced by :meth:`passage_neobank.webhooks.WebhookHandler.construct_event`
    after the signature has been checked.

    Parameters
    ----------
    id : str
        Unique event ID.
    event : WebhookEventType
        Event type. Unmapped values resolve to ``UNKNOWN``; the original
        string stays available in ``raw``.
    data : Any
        Event payload; shape depends on ``event``.
    timestamp : str
        ISO 8601 time the event was generated.
    version : str or None
        API version that generated the event.
    correlation_id : str or None
        Correlation ID for tracing.
    raw : dict
        The full decoded body.
    """

    id: str
    event: WebhookEventType = Field(validation_alias=AliasChoices("event", "eventType"))
    data: Any = None
    timestamp: str
    version: str | None = None
    correlation_id: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _stash_raw(cls, values: Any) -> Any:
        if isinstance(values, dict) and "raw" not in values:
            return {**values, "raw": dict(values)}
        return values

    @property
    def event_name(self) -> str:
        """Event type exactly as sent, including types this release does not know."""
        name = self.raw.get("event", self.raw.get("eventType"))
        return str(name) if name is not None else self.event.value

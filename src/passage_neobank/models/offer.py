"""Decrypted offer details and verification results."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from pydantic import Field, ValidationError

from passage_neobank.models._base import AmountString, PassageModel

T = TypeVar("T")
OfferT = TypeVar("OfferT")

#: Wire keys with a dedicated field on :class:`DecryptedOfferDetails`.
#: Anything else a lender sends is kept in ``additional_fields``.
KNOWN_OFFER_FIELDS: frozenset[str] = frozenset(
    {
        "apr",
        "interestRate",
        "term",
        "monthlyPayment",
        "totalRepayment",
        "originationFee",
        "originationFeePercent",
        "prepaymentPenalty",
        "latePaymentFee",
        "fees",
        "offerDetails",
    }
)


class DecryptedOfferDetails(PassageModel):
    """Offer terms decrypted from ``encryptedOfferDetailsNeobank``.

    Known terms are typed fields; lender-specific extensions are kept
    verbatim in :attr:`additional_fields` so nothing is lost. A known term
    sent with an unexpected type (``"term": "36 months"``) is kept there too.

    ``originationFee``, ``originationFeePercent``, ``prepaymentPenalty`` and
    ``latePaymentFee`` are the older flat fee fields; newer lenders send a
    structured ``fees`` object instead.
    """

    apr: AmountString = None
    interest_rate: AmountString = None
    term: int | None = None
    monthly_payment: AmountString = None
    total_repayment: AmountString = None
    origination_fee: AmountString = None
    origination_fee_percent: AmountString = None
    prepayment_penalty: bool | None = None
    late_payment_fee: AmountString = None
    fees: dict[str, Any] | None = None
    offer_details: dict[str, Any] | None = None
    additional_fields: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> DecryptedOfferDetails:
        """Split a decrypted offer dict into known fields and ``additional_fields``."""
        known: dict[str, Any] = {}
        additional: dict[str, Any] = {}
        for key, value in payload.items():
            if key in KNOWN_OFFER_FIELDS:
                known[key] = value
            else:
                additional[key] = value
        try:
            return cls.model_validate({**known, "additionalFields": additional})
        except ValidationError as exc:
            rejected = {err["loc"][0] for err in exc.errors() if err["loc"] and err["loc"][0] in known}
            if not rejected:
                raise
        for key in rejected:
            additional[str(key)] = known.pop(str(key))
        return cls.model_validate({**known, "additionalFields": additional})


@dataclasses.dataclass(frozen=True)
class DecryptionResult(Generic[T]):
    """Decrypted data plus the integrity verdict.

    Attributes
    ----------
    data : T
        The decrypted data.
    checksum : str
        SHA-256 hex digest of the *encrypted* payload string as received.
    verified : bool
        Whether ``checksum`` equals the checksum asserted by the lender.
        A mismatch is an expected outcome, not an exception.
    """

    data: T
    checksum: str
    verified: bool


@dataclasses.dataclass(frozen=True)
class BatchDecryptResult(Generic[OfferT]):
    """Per-offer outcome of :func:`passage_neobank.crypto.decrypt_offers`.

    Either ``details`` is set and ``error`` is ``None``, or decryption
    failed and ``details is None``, ``verified is False`` and ``error``
    holds the failure message. ``offer`` is always the caller's original
    object.
    """

    offer: OfferT
    details: DecryptedOfferDetails | None
    verified: bool
    checksum: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

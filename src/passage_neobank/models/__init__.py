"""Pydantic models and result types for passage_neobank."""

from passage_neobank.models._base import PassageEnum, PassageModel
from passage_neobank.models.envelope import (
    DocumentMetadata,
    EncryptedPIIPayload,
    HybridEncryptedPayload,
)
from passage_neobank.models.offer import (
    KNOWN_OFFER_FIELDS,
    BatchDecryptResult,
    DecryptedOfferDetails,
    DecryptionResult,
)
from passage_neobank.models.sdx import SdxAction, SdxDocumentType, SdxToken, SdxUploadResult
from passage_neobank.models.webhook import WebhookEvent, WebhookEventType

__all__ = [
    "KNOWN_OFFER_FIELDS",
    "BatchDecryptResult",
    "DecryptedOfferDetails",
    "DecryptionResult",
    "DocumentMetadata",
    "EncryptedPIIPayload",
    "HybridEncryptedPayload",
    "PassageEnum",
    "PassageModel",
    "SdxAction",
    "SdxDocumentType",
    "SdxToken",
    "SdxUploadResult",
    "WebhookEvent",
    "WebhookEventType",
]

"""passage_neobank - Async Python SDK for Passage neobank integrations."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("passage-neobank")
except PackageNotFoundError:
    __version__ = "0+local"
from passage_neobank._executor import ResilientExecutor
from passage_neobank.client import PassageClient
from passage_neobank.config import PassageConfig
from passage_neobank.crypto import (
    checksum,
    constant_time_equals,
    decrypt_document,
    decrypt_offer_details,
    decrypt_offers,
    encrypt_document_for_sdx,
    encrypt_pii,
    encrypt_pii_for_lenders,
    hybrid_decrypt,
    hybrid_encrypt,
)
from passage_neobank.exceptions import (
    EnvelopeDecryptionError,
    EnvelopeFormatError,
    InvalidKeyError,
    MalformedSignatureError,
    MissingSignatureError,
    PassageAuthenticationError,
    PassageAuthorizationError,
    PassageConfigError,
    PassageConflictError,
    PassageCryptoError,
    PassageError,
    PassageNetworkError,
    PassageNotFoundError,
    PassageRateLimitError,
    PassageTimeoutError,
    PassageValidationError,
    PIIEncryptionError,
    SignatureMismatchError,
    TimestampOutOfToleranceError,
    WebhookPayloadError,
    WebhookSignatureError,
)
from passage_neobank.models import (
    BatchDecryptResult,
    DecryptedOfferDetails,
    DecryptionResult,
    EncryptedPIIPayload,
    HybridEncryptedPayload,
    SdxAction,
    SdxDocumentType,
    SdxToken,
    SdxUploadResult,
    WebhookEvent,
    WebhookEventType,
)
from passage_neobank.sdx import SdxResource
from passage_neobank.webhooks import SIGNATURE_HEADER, WebhookHandler

__all__ = [
    "__version__",
    "SIGNATURE_HEADER",
    "BatchDecryptResult",
    "DecryptedOfferDetails",
    "DecryptionResult",
    "EncryptedPIIPayload",
    "EnvelopeDecryptionError",
    "EnvelopeFormatError",
    "HybridEncryptedPayload",
    "InvalidKeyError",
    "MalformedSignatureError",
    "MissingSignatureError",
    "PIIEncryptionError",
    "PassageAuthenticationError",
    "PassageAuthorizationError",
    "PassageClient",
    "PassageConfig",
    "PassageConfigError",
    "PassageConflictError",
    "PassageCryptoError",
    "PassageError",
    "PassageNetworkError",
    "PassageNotFoundError",
    "PassageRateLimitError",
    "PassageTimeoutError",
    "PassageValidationError",
    "ResilientExecutor",
    "SdxAction",
    "SdxDocumentType",
    "SdxResource",
    "SdxToken",
    "SdxUploadResult",
    "SignatureMismatchError",
    "TimestampOutOfToleranceError",
    "WebhookEvent",
    "WebhookEventType",
    "WebhookHandler",
    "WebhookPayloadError",
    "WebhookSignatureError",
    "checksum",
    "constant_time_equals",
    "decrypt_document",
    "decrypt_offer_details",
    "decrypt_offers",
    "encrypt_document_for_sdx",
    "encrypt_pii",
    "encrypt_pii_for_lenders",
    "hybrid_decrypt",
    "hybrid_encrypt",
]

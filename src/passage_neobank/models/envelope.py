"""Hybrid encryption envelope models.

An envelope is the four-field container produced by
:func:`passage_neobank.crypto.hybrid_encrypt`::

    {"encryptedData": "<b64>", "encryptedKey": "<b64>", "iv": "<b64>", "authTag": "<b64>"}

It carries no recipient identity; :class:`EncryptedPIIPayload` binds an
envelope to a lender.
"""

from __future__ import annotations

from pydantic import StrictStr

from passage_neobank.models._base import PassageModel


class HybridEncryptedPayload(PassageModel):
    """AES-256-GCM ciphertext plus its RSA-OAEP wrapped key.

    Parameters
    ----------
    encrypted_data : str
        Base64 AES-GCM ciphertext (without the tag).
    encrypted_key : str
        Base64 RSA-OAEP wrapped 32-byte AES key.
    iv : str
        Base64 12-byte GCM nonce.
    auth_tag : str
        Base64 16-byte GCM authentication tag.
    """

    encrypted_data: StrictStr
    encrypted_key: StrictStr
    iv: StrictStr
    auth_tag: StrictStr


class EncryptedPIIPayload(PassageModel):
    """PII envelope addressed to one lender.

    ``encrypted_data`` is the :class:`HybridEncryptedPayload` serialized to
    a JSON string, because the API transports it as a string field rather
    than a nested object.
    """

    lender_id: str
    encrypted_data: str

    def envelope(self) -> HybridEncryptedPayload:
        """Parse ``encrypted_data`` back into its envelope."""
        return HybridEncryptedPayload.model_validate_json(self.encrypted_data)


class DocumentMetadata(PassageModel):
    """Metadata section of a packed SDX document.

    No checksum is carried; the GCM tag authenticates the ciphertext.
    """

    encrypted_key: StrictStr
    iv: StrictStr
    auth_tag: StrictStr

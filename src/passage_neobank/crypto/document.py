"""Packed document format for Secure Document Exchange (SDX) uploads.

Binary layout::

    uint32 BE  metadata length L
    L bytes    UTF-8 JSON {"encryptedKey": b64, "iv": b64, "authTag": b64}
    rest       AES-256-GCM ciphertext (same length as the document)

There is no checksum field; the GCM tag in the metadata authenticates the
ciphertext.
"""

from __future__ import annotations

import base64
import json
import logging
import struct
from typing import Any

from pydantic import ValidationError

from passage_neobank._constants import DOCUMENT_LENGTH_PREFIX, GCM_NONCE_SIZE, GCM_TAG_SIZE
from passage_neobank.crypto.hybrid import SealedBox, b64decode_field, open_sealed, seal
from passage_neobank.exceptions import EnvelopeFormatError
from passage_neobank.models.envelope import DocumentMetadata

_logger = logging.getLogger(__name__)

_LENGTH = struct.Struct(">I")


def encrypt_document_for_sdx(document: bytes, public_key_pem: str | bytes) -> bytes:
    """Encrypt a document and pack it for SDX upload.

    Parameters
    ----------
    document : bytes
        Raw document bytes (PDF, image, ...). May be empty.
    public_key_pem : str or bytes
        Recipient RSA public key in PEM format.

    Returns
    -------
    bytes
        ``[4-byte length][metadata JSON][ciphertext]``.
    """
    box = seal(bytes(document), public_key_pem)
    metadata = DocumentMetadata(
        encrypted_key=base64.b64encode(box.encrypted_key).decode("ascii"),
        iv=base64.b64encode(box.iv).decode("ascii"),
        auth_tag=base64.b64encode(box.auth_tag).decode("ascii"),
    )
    metadata_bytes = metadata.to_json().encode("utf-8")
    _logger.debug(
        "Packed SDX document: metadata=%d bytes ciphertext=%d bytes",
        len(metadata_bytes),
        len(box.ciphertext),
    )
    return _LENGTH.pack(len(metadata_bytes)) + metadata_bytes + box.ciphertext


def unpack_document(blob: bytes) -> tuple[DocumentMetadata, bytes]:
    """Split a packed document into its metadata and ciphertext.

    Raises
    ------
    EnvelopeFormatError
        If the blob is shorter than its length prefix claims, or the
        metadata is not a JSON object with the three string fields.
    """
    data = bytes(blob)
    if len(data) < DOCUMENT_LENGTH_PREFIX:
        raise EnvelopeFormatError(f"Packed document too short: {len(data)} bytes")

    (metadata_len,) = _LENGTH.unpack_from(data, 0)
    end = DOCUMENT_LENGTH_PREFIX + metadata_len
    if len(data) < end:
        raise EnvelopeFormatError(f"Packed document metadata length {metadata_len} extends beyond {len(data)} bytes")

    try:
        raw: Any = json.loads(data[DOCUMENT_LENGTH_PREFIX:end].decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise EnvelopeFormatError("Packed document metadata is not valid JSON") from exc
    if not isinstance(raw, dict):
        raise EnvelopeFormatError("Packed document metadata must be a JSON object")

    try:
        metadata = DocumentMetadata.model_validate(
            {name: raw.get(name) for name in ("encryptedKey", "iv", "authTag")}
        )
    except ValidationError as exc:
        raise EnvelopeFormatError(
            "Packed document metadata missing required fields (encryptedKey, iv, authTag)"
        ) from exc

    return metadata, data[end:]


def decrypt_document(blob: bytes, private_key_pem: str | bytes) -> bytes:
    """Unpack and decrypt a document produced by :func:`encrypt_document_for_sdx`.

    Raises
    ------
    EnvelopeFormatError
        If the container or its metadata is malformed.
    EnvelopeDecryptionError
        If the key does not match or the document was tampered with.
    """
    metadata, ciphertext = unpack_document(blob)
    box = SealedBox(
        ciphertext=ciphertext,
        encrypted_key=b64decode_field(metadata.encrypted_key, name="encryptedKey"),
        iv=b64decode_field(metadata.iv, name="iv", expected_len=GCM_NONCE_SIZE),
        auth_tag=b64decode_field(metadata.auth_tag, name="authTag", expected_len=GCM_TAG_SIZE),
    )
    return open_sealed(box, private_key_pem)

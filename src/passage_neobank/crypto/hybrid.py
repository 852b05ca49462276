"""Hybrid envelope encryption: AES-256-GCM content, RSA-OAEP key wrap.

Every call generates a fresh 256-bit AES key and 96-bit nonce, so two
encryptions of the same plaintext for the same recipient never share key
material. The GCM tag is the only integrity check inside an envelope.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
from typing import Any, NamedTuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import ValidationError

from passage_neobank._constants import AES_KEY_SIZE, GCM_NONCE_SIZE, GCM_TAG_SIZE
from passage_neobank.crypto._keys import load_private_key, load_public_key, oaep_sha256
from passage_neobank.exceptions import EnvelopeDecryptionError, EnvelopeFormatError, PassageCryptoError
from passage_neobank.models.envelope import HybridEncryptedPayload

_logger = logging.getLogger(__name__)

_ENVELOPE_FIELDS = ("encryptedData", "encryptedKey", "iv", "authTag")


class SealedBox(NamedTuple):
    """Raw (un-encoded) components of one hybrid encryption."""

    ciphertext: bytes
    encrypted_key: bytes
    iv: bytes
    auth_tag: bytes


def seal(plaintext: bytes, public_key_pem: str | bytes) -> SealedBox:
    """Encrypt *plaintext* for the holder of *public_key_pem*.

    Parameters
    ----------
    plaintext : bytes
        Data to encrypt; may be empty.
    public_key_pem : str or bytes
        Recipient RSA public key in PEM format.

    Returns
    -------
    SealedBox
        Ciphertext (same length as *plaintext*), wrapped key, nonce and
        16-byte tag.

    Raises
    ------
    InvalidKeyError
        If the public key cannot be loaded.
    PassageCryptoError
        If the key is too small to wrap a 32-byte key with OAEP/SHA-256.
    """
    public_key = load_public_key(public_key_pem)

    aes_key = AESGCM.generate_key(bit_length=AES_KEY_SIZE * 8)
    iv = os.urandom(GCM_NONCE_SIZE)
    # AESGCM appends the tag to the ciphertext
    sealed = AESGCM(aes_key).encrypt(iv, plaintext, None)
    ciphertext, auth_tag = sealed[:-GCM_TAG_SIZE], sealed[-GCM_TAG_SIZE:]

    try:
        encrypted_key = public_key.encrypt(aes_key, oaep_sha256())
    except ValueError as exc:
        raise PassageCryptoError(f"RSA-OAEP key wrap failed: {exc}") from exc

    _logger.debug("Sealed %d bytes for RSA-%d recipient", len(plaintext), public_key.key_size)
    return SealedBox(ciphertext, encrypted_key, iv, auth_tag)


def open_sealed(box: SealedBox, private_key_pem: str | bytes) -> bytes:
    """Unwrap the content key and decrypt *box*, verifying the GCM tag.

    Raises
    ------
    InvalidKeyError
        If the private key cannot be loaded.
    EnvelopeDecryptionError
        If the key was wrapped for a different RSA key, or the tag does
        not match (tampering or corruption).
    """
    private_key = load_private_key(private_key_pem)

    try:
        aes_key = private_key.decrypt(box.encrypted_key, oaep_sha256())
    except ValueError as exc:
        raise EnvelopeDecryptionError(
            "Failed to unwrap content key: payload was encrypted for a different key"
        ) from exc
    if len(aes_key) != AES_KEY_SIZE:
        raise EnvelopeDecryptionError(f"Unwrapped content key must be {AES_KEY_SIZE} bytes (got {len(aes_key)})")

    try:
        return AESGCM(aes_key).decrypt(box.iv, box.ciphertext + box.auth_tag, None)
    except InvalidTag as exc:
        raise EnvelopeDecryptionError(
            "Authentication tag mismatch: payload was tampered with or corrupted"
        ) from exc


def b64decode_field(value: str, *, name: str, expected_len: int | None = None) -> bytes:
    """Strictly base64-decode an envelope field."""
    try:
        data = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise EnvelopeFormatError(f"Invalid encrypted payload: {name} is not valid base64") from exc
    if expected_len is not None and len(data) != expected_len:
        raise EnvelopeFormatError(f"Invalid encrypted payload: {name} must be {expected_len} bytes (got {len(data)})")
    return data


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def parse_envelope(envelope: str | bytes | HybridEncryptedPayload) -> HybridEncryptedPayload:
    """Parse an envelope JSON string, checking that all four fields are strings.

    Raises
    ------
    EnvelopeFormatError
        On malformed JSON, a non-object, or missing / non-string fields.
    """
    if isinstance(envelope, HybridEncryptedPayload):
        return envelope
    try:
        raw: Any = json.loads(envelope)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as exc:
        raise EnvelopeFormatError("Invalid encrypted payload: malformed JSON") from exc

    if not isinstance(raw, dict) or any(not isinstance(raw.get(name), str) for name in _ENVELOPE_FIELDS):
        raise EnvelopeFormatError(
            "Invalid encrypted payload: missing required fields (encryptedData, encryptedKey, iv, authTag)"
        )
    try:
        return HybridEncryptedPayload.model_validate({name: raw[name] for name in _ENVELOPE_FIELDS})
    except ValidationError as exc:
        raise EnvelopeFormatError(f"Invalid encrypted payload: {exc}") from exc


def decode_envelope(payload: HybridEncryptedPayload) -> SealedBox:
    """Base64-decode an envelope, enforcing the 12-byte nonce and 16-byte tag."""
    return SealedBox(
        ciphertext=b64decode_field(payload.encrypted_data, name="encryptedData"),
        encrypted_key=b64decode_field(payload.encrypted_key, name="encryptedKey"),
        iv=b64decode_field(payload.iv, name="iv", expected_len=GCM_NONCE_SIZE),
        auth_tag=b64decode_field(payload.auth_tag, name="authTag", expected_len=GCM_TAG_SIZE),
    )


def hybrid_encrypt(data: str | bytes, public_key_pem: str | bytes) -> HybridEncryptedPayload:
    """Encrypt *data* with AES-256-GCM and wrap the key with RSA-OAEP.

    Parameters
    ----------
    data : str or bytes
        Data to encrypt. Strings are UTF-8 encoded.
    public_key_pem : str or bytes
        Recipient RSA public key in PEM format.

    Returns
    -------
    HybridEncryptedPayload
        Base64-encoded ``encryptedData``, ``encryptedKey``, ``iv`` and
        ``authTag``.
    """
    plaintext = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    box = seal(plaintext, public_key_pem)
    return HybridEncryptedPayload(
        encrypted_data=_b64(box.ciphertext),
        encrypted_key=_b64(box.encrypted_key),
        iv=_b64(box.iv),
        auth_tag=_b64(box.auth_tag),
    )


def hybrid_decrypt(
    envelope: str | bytes | HybridEncryptedPayload,
    private_key_pem: str | bytes,
) -> bytes:
    """Decrypt an envelope produced by :func:`hybrid_encrypt`.

    Parameters
    ----------
    envelope : str, bytes or HybridEncryptedPayload
        Envelope JSON (e.g. ``offer.encryptedOfferDetailsNeobank``) or an
        already parsed envelope.
    private_key_pem : str or bytes
        Your RSA private key in PEM format.

    Returns
    -------
    bytes
        Decrypted plaintext.

    Raises
    ------
    EnvelopeFormatError
        If the envelope is structurally invalid.
    EnvelopeDecryptionError
        If the key does not match or the payload was tampered with.
    InvalidKeyError
        If the private key cannot be loaded.
    """
    box = decode_envelope(parse_envelope(envelope))
    return open_sealed(box, private_key_pem)


def hybrid_decrypt_text(
    envelope: str | bytes | HybridEncryptedPayload,
    private_key_pem: str | bytes,
) -> str:
    """Like :func:`hybrid_decrypt`, decoding the plaintext as UTF-8."""
    plaintext = hybrid_decrypt(envelope, private_key_pem)
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise EnvelopeFormatError("Decrypted payload is not valid UTF-8") from exc

from __future__ import annotations

import base64
import json

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from passage_neobank.crypto.hybrid import hybrid_decrypt, hybrid_decrypt_text, hybrid_encrypt, parse_envelope
from passage_neobank.exceptions import EnvelopeDecryptionError, EnvelopeFormatError, InvalidKeyError
from passage_neobank.models.envelope import HybridEncryptedPayload


def _flip_first_bit(field: str) -> str:
    raw = bytearray(base64.b64decode(field))
    raw[0] ^= 0x01
    return base64.b64encode(bytes(raw)).decode("ascii")


def _tampered(envelope: HybridEncryptedPayload, field: str) -> str:
    wire = envelope.to_wire()
    wire[field] = _flip_first_bit(wire[field])
    return json.dumps(wire)


@pytest.mark.parametrize(
    "plaintext",
    [
        b"",
        b"hello",
        "Zoë signs the loan agreement 🚀".encode(),
        bytes(range(256)) * 400,
    ],
    ids=["empty", "ascii", "utf8", "large"],
)
def test_round_trip(keypair, plaintext: bytes) -> None:
    envelope = hybrid_encrypt(plaintext, keypair.public_pem)
    assert hybrid_decrypt(envelope.to_json(), keypair.private_pem) == plaintext


def test_round_trip_text(keypair) -> None:
    envelope = hybrid_encrypt('{"name":"José"}', keypair.public_pem)
    assert hybrid_decrypt_text(envelope, keypair.private_pem) == '{"name":"José"}'


def test_envelope_shape(keypair) -> None:
    envelope = hybrid_encrypt(b"twelve bytes", keypair.public_pem)
    wire = json.loads(envelope.to_json())

    assert set(wire) == {"encryptedData", "encryptedKey", "iv", "authTag"}
    assert len(base64.b64decode(wire["iv"])) == 12
    assert len(base64.b64decode(wire["authTag"])) == 16
    assert len(base64.b64decode(wire["encryptedKey"])) == 256
    # GCM is a stream mode: ciphertext length equals plaintext length
    assert len(base64.b64decode(wire["encryptedData"])) == len(b"twelve bytes")


def test_fresh_key_and_nonce_per_call(keypair) -> None:
    first = hybrid_encrypt(b"same input", keypair.public_pem)
    second = hybrid_encrypt(b"same input", keypair.public_pem)

    assert first.iv != second.iv
    assert first.encrypted_key != second.encrypted_key
    assert first.encrypted_data != second.encrypted_data


def test_wrong_private_key_fails(keypair, other_keypair) -> None:
    envelope = hybrid_encrypt(b"for keypair only", keypair.public_pem)
    with pytest.raises(EnvelopeDecryptionError):
        hybrid_decrypt(envelope, other_keypair.private_pem)


@pytest.mark.parametrize("field", ["encryptedData", "encryptedKey", "iv", "authTag"])
def test_tampering_is_detected(keypair, field: str) -> None:
    envelope = hybrid_encrypt(b"loan amount: 25000", keypair.public_pem)
    with pytest.raises(EnvelopeDecryptionError):
        hybrid_decrypt(_tampered(envelope, field), keypair.private_pem)


def test_tag_mismatch_message(keypair) -> None:
    envelope = hybrid_encrypt(b"payload", keypair.public_pem)
    with pytest.raises(EnvelopeDecryptionError, match="Authentication tag mismatch"):
        hybrid_decrypt(_tampered(envelope, "authTag"), keypair.private_pem)


def test_malformed_json(keypair) -> None:
    with pytest.raises(EnvelopeFormatError, match="malformed JSON"):
        hybrid_decrypt("{not json", keypair.private_pem)


@pytest.mark.parametrize(
    "body",
    [
        {"encryptedData": "", "encryptedKey": "", "iv": ""},
        {"encryptedData": "", "encryptedKey": "", "iv": "", "authTag": 5},
        {"encrypted_data": "", "encrypted_key": "", "iv": "", "auth_tag": ""},
        [],
    ],
)
def test_missing_or_non_string_fields(body) -> None:
    with pytest.raises(EnvelopeFormatError, match="missing required fields"):
        parse_envelope(json.dumps(body))


def test_invalid_base64(keypair) -> None:
    wire = hybrid_encrypt(b"data", keypair.public_pem).to_wire()
    wire["encryptedKey"] = "not base64!!"
    with pytest.raises(EnvelopeFormatError, match="encryptedKey is not valid base64"):
        hybrid_decrypt(json.dumps(wire), keypair.private_pem)


@pytest.mark.parametrize(("field", "size"), [("iv", 8), ("authTag", 12)])
def test_wrong_nonce_or_tag_length(keypair, field: str, size: int) -> None:
    wire = hybrid_encrypt(b"data", keypair.public_pem).to_wire()
    wire[field] = base64.b64encode(b"\x00" * size).decode("ascii")
    with pytest.raises(EnvelopeFormatError, match=f"{field} must be"):
        hybrid_decrypt(json.dumps(wire), keypair.private_pem)


def test_invalid_public_key() -> None:
    with pytest.raises(InvalidKeyError):
        hybrid_encrypt(b"data", "-----BEGIN PUBLIC KEY-----\nnope\n-----END PUBLIC KEY-----\n")
    with pytest.raises(InvalidKeyError):
        hybrid_encrypt(b"data", "")
    with pytest.raises(InvalidKeyError, match="must be a PEM string"):
        hybrid_encrypt(b"data", {"kty": "RSA"})  # type: ignore[arg-type]


def test_non_rsa_public_key_rejected() -> None:
    ec_public = (
        ec.generate_private_key(ec.SECP256R1())
        .public_key()
        .public_bytes(serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo)
        .decode("ascii")
    )
    with pytest.raises(InvalidKeyError, match="must be RSA"):
        hybrid_encrypt(b"data", ec_public)


def test_invalid_private_key(keypair) -> None:
    envelope = hybrid_encrypt(b"data", keypair.public_pem)
    with pytest.raises(InvalidKeyError):
        hybrid_decrypt(envelope, keypair.public_pem)

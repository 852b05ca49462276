"""PEM key loading for the hybrid envelope.

Keys are parsed on every call; nothing is cached, callers own key
lifecycle.
"""

from __future__ import annotations

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from passage_neobank.exceptions import InvalidKeyError


def oaep_sha256() -> padding.OAEP:
    """RSA-OAEP padding with SHA-256 for both the hash and MGF1."""
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


def _pem_bytes(pem: str | bytes, *, name: str) -> bytes:
    if isinstance(pem, str):
        data = pem.encode("utf-8")
    elif isinstance(pem, (bytes, bytearray, memoryview)):
        data = bytes(pem)
    else:
        raise InvalidKeyError(f"{name} must be a PEM string, got {type(pem).__name__}")
    if not data.strip():
        raise InvalidKeyError(f"{name} is empty")
    return data


def load_public_key(public_key_pem: str | bytes) -> rsa.RSAPublicKey:
    """Load an RSA public key from PEM (SPKI or PKCS#1).

    Raises
    ------
    InvalidKeyError
        If the PEM cannot be parsed or is not an RSA key.
    """
    data = _pem_bytes(public_key_pem, name="Public key")
    try:
        key = serialization.load_pem_public_key(data)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise InvalidKeyError(f"Invalid public key: {exc}") from exc
    if not isinstance(key, rsa.RSAPublicKey):
        raise InvalidKeyError(f"Public key must be RSA, got {type(key).__name__}")
    return key


def load_private_key(private_key_pem: str | bytes) -> rsa.RSAPrivateKey:
    """Load an unencrypted RSA private key from PEM (PKCS#8 or PKCS#1).

    Raises
    ------
    InvalidKeyError
        If the PEM cannot be parsed, is password protected, or is not RSA.
    """
    data = _pem_bytes(private_key_pem, name="Private key")
    try:
        key = serialization.load_pem_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise InvalidKeyError(f"Invalid private key: {exc}") from exc
    if not isinstance(key, rsa.RSAPrivateKey):
        raise InvalidKeyError(f"Private key must be RSA, got {type(key).__name__}")
    return key

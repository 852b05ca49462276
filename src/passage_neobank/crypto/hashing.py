"""Integrity fingerprints and constant-time comparison."""

from __future__ import annotations

import hashlib
import hmac


def checksum(data: str | bytes) -> str:
    """Compute SHA-256 of *data*, returning lowercase hex.

    Parameters
    ----------
    data : str or bytes
        Data to hash. Strings are UTF-8 encoded.

    Returns
    -------
    str
        64-character hex digest.
    """
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    return hashlib.sha256(raw).hexdigest()


def hmac_sha256_hex(secret: str | bytes, message: bytes) -> str:
    """HMAC-SHA256 of *message* under *secret*, as lowercase hex."""
    key = secret.encode("utf-8") if isinstance(secret, str) else secret
    return hmac.new(key, message, hashlib.sha256).hexdigest()


def constant_time_equals(a: bytes, b: bytes) -> bool:
    """Compare two byte strings without leaking where they differ.

    Lengths are compared first; only equal-length buffers reach
    :func:`hmac.compare_digest`, whose running time depends on the length
    alone.
    """
    if len(a) != len(b):
        return False
    return hmac.compare_digest(a, b)

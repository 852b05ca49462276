"""Helpers for safe debug logging.

passage_neobank handles borrower PII, API keys, SDX tokens and encrypted
envelopes. This module redacts those fields before anything is emitted
at DEBUG level.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "apikey",
        "api_key",
        "authorization",
        "secret",
        "webhooksecret",
        "webhook_secret",
        "privatekey",
        "private_key",
        "sdxtoken",
        "sdx_token",
        "x-passage-signature",
        "signature",
        # Borrower PII
        "ssn",
        "dateofbirth",
        "date_of_birth",
        # Encrypted/encoded payloads
        "encrypteddata",
        "encrypted_data",
        "encryptedkey",
        "encrypted_key",
        "authtag",
        "auth_tag",
        "encryptedofferdetailsneobank",
        "encrypted_offer_details_neobank",
        "encrypteddocument",
        "encrypted_document",
        "encryptedpayloads",
        "encrypted_payloads",
    }
)


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if key.lower() in _SENSITIVE_VALUE_KEYS:
                redacted[key] = "<redacted>"
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    # Fallback: represent unknown objects without dumping internals.
    return f"<{type(value).__name__}>"

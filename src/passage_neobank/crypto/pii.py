"""Per-lender PII encryption.

Each lender gets its own envelope with its own one-time AES key, so the
platform relaying the payloads cannot read them and lenders cannot read
each other's copies.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from passage_neobank.crypto.hybrid import hybrid_encrypt
from passage_neobank.exceptions import PassageError, PIIEncryptionError
from passage_neobank.models.envelope import EncryptedPIIPayload

_logger = logging.getLogger(__name__)


def canonical_json(data: Any) -> str:
    """Compact JSON with insertion-ordered keys and unescaped UTF-8."""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def encrypt_pii(lender_id: str, lender_public_key: str | bytes, pii_data: Mapping[str, Any]) -> EncryptedPIIPayload:
    """Encrypt borrower PII for a single lender.

    Parameters
    ----------
    lender_id : str
        The lender's ID.
    lender_public_key : str or bytes
        The lender's RSA public key in PEM format.
    pii_data : Mapping
        JSON-serializable PII (name, SSN, address, ...).

    Returns
    -------
    EncryptedPIIPayload
        ``lender_id`` plus the envelope serialized as a JSON string, as the
        API expects it.
    """
    try:
        plaintext = canonical_json(pii_data)
    except (TypeError, ValueError) as exc:
        raise PIIEncryptionError(
            f"PII for lender {lender_id} is not JSON serializable: {exc}",
            payloads=[],
            failures={lender_id: str(exc)},
        ) from exc
    envelope = hybrid_encrypt(plaintext, lender_public_key)
    return EncryptedPIIPayload(lender_id=lender_id, encrypted_data=envelope.to_json())


def _lender_fields(lender: Any) -> tuple[str, str | bytes]:
    if isinstance(lender, tuple):
        lender_id, public_key = lender
        return str(lender_id), public_key
    if isinstance(lender, Mapping):
        lender_id = lender.get("lenderId", lender.get("lender_id"))
        public_key = lender.get("publicKey", lender.get("public_key"))
    else:
        lender_id = getattr(lender, "lender_id", None)
        public_key = getattr(lender, "public_key", None)
    if lender_id is None or public_key is None:
        raise ValueError("lender entry must provide a lender ID and a public key")
    return str(lender_id), public_key


def encrypt_pii_for_lenders(
    lenders: Iterable[Any],
    pii_data: Mapping[str, Any],
) -> list[EncryptedPIIPayload]:
    """Encrypt the same PII for several lenders.

    Lenders are processed independently: a bad key for one lender does not
    stop the others from being encrypted.

    Parameters
    ----------
    lenders : Iterable
        ``(lender_id, public_key_pem)`` pairs, mappings with
        ``lenderId``/``publicKey`` (or snake_case) keys, or objects with
        ``lender_id``/``public_key`` attributes.
    pii_data : Mapping
        JSON-serializable PII.

    Returns
    -------
    list[EncryptedPIIPayload]
        One payload per lender, in input order.

    Raises
    ------
    PIIEncryptionError
        After every lender has been attempted, if any failed. The error
        carries the successful ``payloads`` and the per-lender ``failures``.
    """
    payloads: list[EncryptedPIIPayload] = []
    failures: dict[str, str] = {}

    for index, lender in enumerate(lenders):
        try:
            lender_id, public_key = _lender_fields(lender)
        except (TypeError, ValueError) as exc:
            failures[f"#{index}"] = str(exc)
            continue
        try:
            payloads.append(encrypt_pii(lender_id, public_key, pii_data))
        except PassageError as exc:
            _logger.debug("PII encryption failed for lender %s", lender_id, exc_info=True)
            failures[lender_id] = str(exc)

    if failures:
        failed = ", ".join(sorted(failures))
        raise PIIEncryptionError(
            f"PII encryption failed for {len(failures)} lender(s): {failed}",
            payloads=payloads,
            failures=failures,
        )
    return payloads

"""Offer decryption with checksum verification.

Lenders encrypt offer details with the neobank's public key, then publish
the SHA-256 of the *encrypted* blob alongside it. The checksum is therefore
recomputed over the ciphertext string exactly as received, before any
decryption; it detects transport corruption of the blob, not errors in the
decrypted terms.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from pydantic import ValidationError

from passage_neobank.crypto.hashing import checksum as sha256_hex
from passage_neobank.crypto.hashing import constant_time_equals
from passage_neobank.crypto.hybrid import hybrid_decrypt_text
from passage_neobank.exceptions import EnvelopeFormatError, PassageError
from passage_neobank.models.offer import BatchDecryptResult, DecryptedOfferDetails, DecryptionResult

_logger = logging.getLogger(__name__)

OfferT = TypeVar("OfferT")


def _checksums_match(actual: str, expected: str) -> bool:
    return constant_time_equals(actual.encode("utf-8"), expected.strip().lower().encode("utf-8"))


def _decrypt_details(
    encrypted_payload: str,
    computed_checksum: str,
    expected_checksum: str,
    private_key_pem: str | bytes,
) -> DecryptionResult[DecryptedOfferDetails]:
    plaintext = hybrid_decrypt_text(encrypted_payload, private_key_pem)
    try:
        raw: Any = json.loads(plaintext)
    except json.JSONDecodeError as exc:
        raise EnvelopeFormatError("Decrypted offer details are not valid JSON") from exc
    if not isinstance(raw, dict):
        raise EnvelopeFormatError("Decrypted offer details must be a JSON object")

    try:
        details = DecryptedOfferDetails.from_payload(raw)
    except ValidationError as exc:
        raise EnvelopeFormatError(f"Decrypted offer details do not match the offer schema: {exc}") from exc

    return DecryptionResult(
        data=details,
        checksum=computed_checksum,
        verified=_checksums_match(computed_checksum, expected_checksum),
    )


def decrypt_offer_details(
    encrypted_payload: str,
    expected_checksum: str,
    private_key_pem: str | bytes,
) -> DecryptionResult[DecryptedOfferDetails]:
    """Decrypt offer details and verify them against the lender's checksum.

    Parameters
    ----------
    encrypted_payload : str
        ``offer.encryptedOfferDetailsNeobank`` as received.
    expected_checksum : str
        ``offer.checksumSha256`` as received.
    private_key_pem : str or bytes
        Your neobank's RSA private key in PEM format.

    Returns
    -------
    DecryptionResult[DecryptedOfferDetails]
        ``verified`` is ``False`` on a checksum mismatch; the data is still
        decrypted so callers can decide what to do.

    Raises
    ------
    EnvelopeFormatError
        If the envelope or the decrypted JSON is malformed.
    EnvelopeDecryptionError
        If the key does not match or the envelope was tampered with.
    """
    computed = sha256_hex(encrypted_payload)
    return _decrypt_details(encrypted_payload, computed, expected_checksum, private_key_pem)


def _offer_fields(offer: Any) -> tuple[Any, Any]:
    if isinstance(offer, Mapping):
        payload = offer.get("encryptedOfferDetailsNeobank", offer.get("encrypted_offer_details_neobank"))
        expected = offer.get("checksumSha256", offer.get("checksum_sha256"))
    else:
        payload = getattr(offer, "encrypted_offer_details_neobank", None)
        expected = getattr(offer, "checksum_sha256", None)
    return payload, expected


def decrypt_offers(
    offers: Iterable[OfferT],
    private_key_pem: str | bytes,
) -> list[BatchDecryptResult[OfferT]]:
    """Decrypt and verify a batch of offers.

    A failure on one offer (malformed envelope, wrong key, tampered tag)
    is reported on that offer's result only; it never aborts the batch.

    Parameters
    ----------
    offers : Iterable
        Offer mappings carrying ``encryptedOfferDetailsNeobank`` and
        ``checksumSha256`` (camelCase or snake_case), or objects with
        ``encrypted_offer_details_neobank`` and ``checksum_sha256``
        attributes.
    private_key_pem : str or bytes
        Your neobank's RSA private key in PEM format.

    Returns
    -------
    list[BatchDecryptResult]
        One result per offer, in input order, each holding the original
        offer object.
    """
    results: list[BatchDecryptResult[OfferT]] = []

    for index, offer in enumerate(offers):
        payload, expected = _offer_fields(offer)
        if not isinstance(payload, str) or not isinstance(expected, str):
            results.append(
                BatchDecryptResult(
                    offer=offer,
                    details=None,
                    verified=False,
                    error="Offer is missing encryptedOfferDetailsNeobank or checksumSha256",
                )
            )
            continue

        computed = sha256_hex(payload)
        try:
            result = _decrypt_details(payload, computed, expected, private_key_pem)
        except PassageError as exc:
            _logger.debug("Offer %d failed to decrypt", index, exc_info=True)
            results.append(
                BatchDecryptResult(
                    offer=offer,
                    details=None,
                    verified=False,
                    checksum=computed,
                    error=str(exc) or type(exc).__name__,
                )
            )
            continue

        if not result.verified:
            _logger.debug("Offer %d checksum mismatch", index)
        results.append(
            BatchDecryptResult(
                offer=offer,
                details=result.data,
                verified=result.verified,
                checksum=result.checksum,
            )
        )

    return results

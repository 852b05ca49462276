"""Envelope cryptography for Passage.

Everything here is synchronous, stateless and safe to call from any
thread. Keys are PEM strings supplied by the caller on every call.
"""

from __future__ import annotations

from passage_neobank.crypto.document import decrypt_document, encrypt_document_for_sdx, unpack_document
from passage_neobank.crypto.hashing import checksum, constant_time_equals
from passage_neobank.crypto.hybrid import hybrid_decrypt, hybrid_decrypt_text, hybrid_encrypt, parse_envelope
from passage_neobank.crypto.offers import decrypt_offer_details, decrypt_offers
from passage_neobank.crypto.pii import encrypt_pii, encrypt_pii_for_lenders

__all__ = [
    "checksum",
    "constant_time_equals",
    "decrypt_document",
    "decrypt_offer_details",
    "decrypt_offers",
    "encrypt_document_for_sdx",
    "encrypt_pii",
    "encrypt_pii_for_lenders",
    "hybrid_decrypt",
    "hybrid_decrypt_text",
    "hybrid_encrypt",
    "parse_envelope",
    "unpack_document",
]

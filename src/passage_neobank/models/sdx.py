"""Secure Document Exchange (SDX) models."""

from __future__ import annotations

from pydantic import Field

from passage_neobank.models._base import PassageEnum, PassageModel


class SdxDocumentType(PassageEnum):
    UNKNOWN = "other"
    KYC = "kyc"
    CONTRACT = "contract"
    SIGNED_CONTRACT = "signed_contract"


class SdxAction(PassageEnum):
    UNKNOWN = "unknown"
    UPLOAD = "upload"
    DOWNLOAD = "download"


class SdxToken(PassageModel):
    """Short-lived SDX access token.

    Parameters
    ----------
    sdx_token : str
        JWT for the SDX service.
    expires_in : int
        Lifetime in seconds (typically 600).
    sdx_url : str
        Base URL of the SDX service for document operations.
    """

    sdx_token: str = Field(repr=False)
    expires_in: int
    sdx_url: str


class SdxUploadResult(PassageModel):
    """SDX response to a blob upload.

    ``duplicate`` is ``True`` when an identical blob was uploaded before.
    """

    document_handle: str
    expires_at: str
    blob_size: int | None = None
    duplicate: bool | None = None

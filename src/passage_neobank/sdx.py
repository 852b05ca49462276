"""Secure Document Exchange (SDX) operations.

Documents are encrypted client-side with
:func:`passage_neobank.crypto.encrypt_document_for_sdx` and uploaded as
opaque blobs. SDX tokens are short-lived (about 10 minutes), so the
combined ``*_document`` helpers fetch a new token on every attempt.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from passage_neobank._executor import ResilientExecutor
from passage_neobank._transport import Transport, unwrap_response
from passage_neobank.crypto.document import encrypt_document_for_sdx
from passage_neobank.exceptions import PassageError
from passage_neobank.models.sdx import SdxAction, SdxDocumentType, SdxToken, SdxUploadResult

_logger = logging.getLogger(__name__)

_TOKEN_ENDPOINT = "/sdx/token"


def _parse(model: type[SdxToken] | type[SdxUploadResult], data: Any, endpoint: str) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise PassageError(f"Unexpected {endpoint} response: {exc}") from exc


class SdxResource:
    """SDX token, upload and download operations.

    Parameters
    ----------
    transport : Transport
        Transport used for both the API and the SDX service.
    executor : ResilientExecutor
        Retry policy applied to every operation.
    """

    def __init__(self, transport: Transport, executor: ResilientExecutor) -> None:
        self._transport = transport
        self._executor = executor

    async def _fetch_token(
        self,
        application_id: str,
        action: SdxAction,
        document_type: SdxDocumentType | None,
    ) -> SdxToken:
        request: dict[str, Any] = {"applicationId": application_id, "action": SdxAction(action).value}
        if document_type is not None:
            request["documentType"] = SdxDocumentType(document_type).value
        body = await self._transport.request_json("POST", _TOKEN_ENDPOINT, json_body=request)
        token: SdxToken = _parse(SdxToken, unwrap_response(body, endpoint=_TOKEN_ENDPOINT), _TOKEN_ENDPOINT)
        _logger.debug("SDX %s token for %s expires in %ds", action, application_id, token.expires_in)
        return token

    async def _upload(
        self,
        token: SdxToken,
        encrypted_document: bytes,
        document_type: SdxDocumentType | None,
        idempotency_key: str | None,
    ) -> SdxUploadResult:
        blob = bytes(encrypted_document)
        headers = {
            "authorization": f"Bearer {token.sdx_token}",
            "content-type": "application/octet-stream",
            "content-length": str(len(blob)),
            "x-document-type": SdxDocumentType(document_type).value if document_type else "other",
        }
        if idempotency_key:
            headers["idempotency-key"] = idempotency_key
        body = await self._transport.request_json("POST", f"{token.sdx_url}/sdx/blobs", headers=headers, data=blob)
        return _parse(SdxUploadResult, body, "sdx/blobs")

    async def _download(self, token: SdxToken, document_handle: str) -> bytes:
        return await self._transport.request_bytes(
            "GET",
            f"{token.sdx_url}/sdx/blobs/{document_handle}",
            headers={"authorization": f"Bearer {token.sdx_token}"},
        )

    async def get_token(
        self,
        application_id: str,
        action: SdxAction | str,
        document_type: SdxDocumentType | str | None = None,
    ) -> SdxToken:
        """Get an SDX access token for one upload or download.

        Raises
        ------
        ValueError
            If *action* or *document_type* is not a known SDX value.
        """
        sdx_action, doc_type = _action(action), _doc_type(document_type)
        return await self._executor.execute(
            lambda: self._fetch_token(application_id, sdx_action, doc_type),
            "sdx.get_token",
        )

    async def upload(
        self,
        token: SdxToken,
        encrypted_document: bytes,
        *,
        document_type: SdxDocumentType | str | None = None,
        idempotency_key: str | None = None,
    ) -> SdxUploadResult:
        """Upload an already packed document with an existing token."""
        doc_type = _doc_type(document_type)
        return await self._executor.execute(
            lambda: self._upload(token, encrypted_document, doc_type, idempotency_key),
            "sdx.upload",
        )

    async def upload_document(
        self,
        application_id: str,
        encrypted_document: bytes,
        *,
        document_type: SdxDocumentType | str | None = None,
        idempotency_key: str | None = None,
    ) -> SdxUploadResult:
        """Fetch an upload token and upload, retrying both together.

        Every attempt fetches a new token.
        """
        doc_type = _doc_type(document_type)

        async def _call() -> SdxUploadResult:
            token = await self._fetch_token(application_id, SdxAction.UPLOAD, doc_type)
            return await self._upload(token, encrypted_document, doc_type, idempotency_key)

        return await self._executor.execute(_call, "sdx.upload_document")

    async def encrypt_and_upload(
        self,
        application_id: str,
        document: bytes,
        recipient_public_key: str | bytes,
        *,
        document_type: SdxDocumentType | str | None = None,
        idempotency_key: str | None = None,
    ) -> SdxUploadResult:
        """Pack *document* for the recipient, then :meth:`upload_document` it.

        The document is encrypted once; only the network steps are retried.
        """
        doc_type = _doc_type(document_type)
        packed = encrypt_document_for_sdx(document, recipient_public_key)
        return await self.upload_document(
            application_id,
            packed,
            document_type=doc_type,
            idempotency_key=idempotency_key,
        )

    async def download(self, token: SdxToken, document_handle: str) -> bytes:
        """Download a packed document with an existing token."""
        return await self._executor.execute(lambda: self._download(token, document_handle), "sdx.download")

    async def download_document(self, application_id: str, document_handle: str) -> bytes:
        """Fetch a download token and download, retrying both together."""

        async def _call() -> bytes:
            token = await self._fetch_token(application_id, SdxAction.DOWNLOAD, None)
            return await self._download(token, document_handle)

        return await self._executor.execute(_call, "sdx.download_document")


def _action(value: SdxAction | str) -> SdxAction:
    action = SdxAction(value)
    if action is SdxAction.UNKNOWN or action != value:
        allowed = ", ".join(a.value for a in SdxAction if a is not SdxAction.UNKNOWN)
        raise ValueError(f"Unknown SDX action {value!r}; expected one of {allowed}")
    return action


def _doc_type(value: SdxDocumentType | str | None) -> SdxDocumentType | None:
    if value is None:
        return None
    document_type = SdxDocumentType(value)
    if document_type != value:
        allowed = ", ".join(t.value for t in SdxDocumentType)
        raise ValueError(f"Unknown SDX document type {value!r}; expected one of {allowed}")
    return document_type

"""HTTP transport for the Passage API and the SDX service."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from passage_neobank._constants import USER_AGENT
from passage_neobank._redact import redact_for_log
from passage_neobank.config import PassageConfig
from passage_neobank.exceptions import (
    PassageError,
    PassageNetworkError,
    PassageTimeoutError,
    create_error_from_response,
)

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by resource modules.

    `HttpTransport` is the production implementation; tests pass fakes.
    """

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        json_body: Any = None,
        data: bytes | None = None,
    ) -> Any: ...

    async def request_bytes(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> bytes: ...


def unwrap_response(body: Any, *, endpoint: str = "") -> Any:
    """Return ``data`` from a ``{"success": ..., "data": ...}`` API envelope.

    Raises
    ------
    PassageError
        If the envelope reports ``success: false`` or is not an envelope.
    """
    if not isinstance(body, Mapping) or "success" not in body:
        raise PassageError(f"Unexpected response shape from {endpoint or 'API'}")
    if not body["success"]:
        raise PassageError(
            str(body.get("message") or body.get("error") or "Request failed"),
            error_code=body.get("code") or body.get("error"),
            request_id=body.get("requestId"),
        )
    return body.get("data")


def _retry_after(headers: Mapping[str, str]) -> float | None:
    value = headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class HttpTransport:
    """aiohttp transport that authenticates API calls and maps HTTP errors.

    Relative URLs (starting with ``/``) are resolved against
    ``config.base_url`` and sent with the API key. Absolute URLs (the SDX
    service) only get the headers the caller supplies.
    """

    def __init__(self, config: PassageConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.timeout)

    def _prepare(self, url: str, headers: Mapping[str, str] | None) -> tuple[str, dict[str, str]]:
        merged: dict[str, str] = {"user-agent": USER_AGENT}
        if url.startswith("/"):
            url = f"{self._config.base_url}{url}"
            merged["authorization"] = f"Bearer {self._config.api_key}"
        if headers:
            merged.update(headers)
        return url, merged

    async def _send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None,
        *,
        json_body: Any = None,
        data: bytes | None = None,
    ) -> tuple[int, Mapping[str, str], bytes]:
        full_url, merged = self._prepare(url, headers)
        if self._config.debug:
            _logger.debug("%s %s body=%s", method, full_url, redact_for_log(json_body if data is None else data))
        else:
            _logger.debug("%s %s", method, full_url)

        body: bytes | None = data
        if json_body is not None:
            body = json.dumps(json_body, separators=(",", ":")).encode("utf-8")
            merged.setdefault("content-type", "application/json")

        try:
            async with self._http.request(method, full_url, data=body, headers=merged, timeout=self._timeout) as resp:
                payload = await resp.read()
                return resp.status, resp.headers, payload
        except TimeoutError as exc:
            raise PassageTimeoutError(f"{method} {url} timed out") from exc
        except aiohttp.ClientError as exc:
            raise PassageNetworkError(f"{method} {url} failed: {exc}") from exc

    @staticmethod
    def _raise_for_status(status: int, headers: Mapping[str, str], payload: bytes) -> None:
        if 200 <= status < 300:
            return
        try:
            body = json.loads(payload) if payload else {}
        except (json.JSONDecodeError, UnicodeDecodeError):
            body = {"message": payload[:200].decode("utf-8", errors="replace")}
        if not isinstance(body, Mapping):
            body = {}
        raise create_error_from_response(status, body, retry_after=_retry_after(headers))

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        json_body: Any = None,
        data: bytes | None = None,
    ) -> Any:
        status, resp_headers, payload = await self._send(method, url, headers, json_body=json_body, data=data)
        self._raise_for_status(status, resp_headers, payload)
        try:
            result = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise PassageError(f"Invalid JSON from {url}: {payload[:200]!r}", status_code=status) from exc
        if self._config.debug:
            _logger.debug("%s %s -> %d %s", method, url, status, redact_for_log(result))
        return result

    async def request_bytes(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> bytes:
        status, resp_headers, payload = await self._send(method, url, headers)
        self._raise_for_status(status, resp_headers, payload)
        return payload

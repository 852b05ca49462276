"""High-level async client for the Passage neobank API."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from passage_neobank._executor import ResilientExecutor
from passage_neobank._transport import HttpTransport, Transport
from passage_neobank.config import PassageConfig
from passage_neobank.exceptions import PassageError
from passage_neobank.sdx import SdxResource
from passage_neobank.webhooks import WebhookHandler

_logger = logging.getLogger(__name__)


class PassageClient:
    """Async client for the Passage neobank API.

    Usage::

        async with PassageClient(PassageConfig.from_env()) as client:
            result = await client.sdx.encrypt_and_upload(app_id, pdf, lender_key)

    Parameters
    ----------
    config : PassageConfig
        Client configuration.
    session : aiohttp.ClientSession or None
        Shared HTTP session. When omitted the client creates one on entry
        and closes it on exit; a supplied session is left open.
    transport : Transport or None
        Replacement transport, mainly for tests. Takes precedence over
        ``session``.
    """

    def __init__(
        self,
        config: PassageConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._custom_transport = transport is not None
        self._executor = ResilientExecutor(config.max_retries)
        self._sdx: SdxResource | None = None
        self._webhooks: WebhookHandler | None = None

    async def __aenter__(self) -> PassageClient:
        if not self._custom_transport:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)
        _logger.debug("Passage client opened (%s, %s)", self._config.environment, self._config.base_url)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._custom_transport:
            self._transport = None
        self._sdx = None

    @property
    def config(self) -> PassageConfig:
        return self._config

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise PassageError("Client is not open; use 'async with PassageClient(...)'")
        return self._transport

    @property
    def sdx(self) -> SdxResource:
        """Secure Document Exchange operations."""
        if self._sdx is None:
            self._sdx = SdxResource(self._require_transport(), self._executor)
        return self._sdx

    @property
    def webhooks(self) -> WebhookHandler:
        """Webhook handler built from ``config.webhook_secret``.

        Raises
        ------
        PassageConfigError
            If no webhook secret is configured.
        """
        if self._webhooks is None:
            self._webhooks = WebhookHandler.from_config(self._config)
        return self._webhooks

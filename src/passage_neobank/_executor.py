"""Bounded retry with exponential backoff for network operations.

Only the network layer retries. Crypto, webhook and configuration errors
are deterministic over their inputs and are re-raised on the first
attempt, as are 4xx responses other than 429.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import aiohttp

from passage_neobank._constants import BACKOFF_BASE_DELAY, BACKOFF_MAX_DELAY, DEFAULT_MAX_RETRIES
from passage_neobank.exceptions import (
    PassageError,
    PassageNetworkError,
    PassageRateLimitError,
    PassageTimeoutError,
    create_error_from_response,
)

_logger = logging.getLogger(__name__)

T = TypeVar("T")


def convert_error(error: BaseException, operation_name: str) -> PassageError:
    """Map any exception raised by an operation to a :class:`PassageError`."""
    if isinstance(error, PassageError):
        return error
    if isinstance(error, aiohttp.ClientResponseError):
        converted = create_error_from_response(error.status, {"message": error.message or f"HTTP {error.status}"})
    elif isinstance(error, (asyncio.TimeoutError, aiohttp.ServerTimeoutError)):
        converted = PassageTimeoutError(f"{operation_name} timed out")
    elif isinstance(error, aiohttp.ClientError):
        converted = PassageNetworkError(f"{operation_name} failed: {error}")
    else:
        converted = PassageError(f"{operation_name} failed: {error}")
    converted.__cause__ = error
    return converted


class ResilientExecutor:
    """Run async operations with bounded retry and exponential backoff.

    Parameters
    ----------
    max_retries : int
        Retries after the first attempt.
    base_delay : float
        Delay before the first retry, in seconds. Doubles per attempt.
    max_delay : float
        Upper bound for a single backoff delay.
    sleep : callable
        Awaitable sleep, replaceable in tests.
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        *,
        base_delay: float = BACKOFF_BASE_DELAY,
        max_delay: float = BACKOFF_MAX_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._sleep = sleep

    @property
    def max_retries(self) -> int:
        return self._max_retries

    def backoff_delay(self, attempt: int) -> float:
        """Delay after failed attempt number *attempt* (0-based)."""
        return min(self._base_delay * (2**attempt), self._max_delay)

    def _should_retry(self, error: PassageError) -> bool:
        if error.is_client_error and error.status_code != 429:
            return False
        return error.is_retryable

    async def execute(self, operation: Callable[[], Awaitable[T]], operation_name: str) -> T:
        """Run *operation*, retrying transient failures.

        Parameters
        ----------
        operation : callable
            Zero-argument coroutine function. It is called again on every
            attempt, so anything it fetches (e.g. an SDX token) is fetched
            afresh.
        operation_name : str
            Name used in error messages and logs.

        Returns
        -------
        T
            The operation's result.

        Raises
        ------
        PassageError
            The converted error of the last attempt, or the first
            non-retryable one.
        """
        attempts = self._max_retries + 1
        for attempt in range(attempts):
            try:
                return await operation()
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # noqa: BLE001
                error = convert_error(exc, operation_name)
                if not self._should_retry(error) or attempt == attempts - 1:
                    if error is exc:
                        raise
                    raise error from exc

                delay = self.backoff_delay(attempt)
                if isinstance(error, PassageRateLimitError) and error.retry_after is not None:
                    delay = max(delay, error.retry_after)
                _logger.debug(
                    "%s failed (attempt %d/%d), retrying in %.2fs: %s",
                    operation_name,
                    attempt + 1,
                    attempts,
                    delay,
                    error.message,
                )
                await self._sleep(delay)

        raise AssertionError("unreachable")  # pragma: no cover

"""Client configuration for passage_neobank."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from passage_neobank._constants import (
    API_BASE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    DEFAULT_WEBHOOK_TOLERANCE,
    ENVIRONMENTS,
)
from passage_neobank.exceptions import PassageConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class PassageConfig:
    """Client configuration.

    Parameters
    ----------
    api_key : str
        Neobank API key (``nb_test_...`` or ``nb_live_...``). The API
        routes sandbox and production traffic by key prefix.
    environment : str
        ``"production"`` or ``"sandbox"``. Informational; the base URL is
        shared by both environments.
    base_url : str
        API base URL. Only override for testing.
    timeout : float
        Per-request timeout in seconds.
    max_retries : int
        Retries for failed network calls (total attempts is
        ``max_retries + 1``).
    debug : bool
        Emit request-level DEBUG logs (payloads are redacted).
    webhook_secret : str or None
        Shared HMAC secret for webhook verification (``whsec_...``).
    webhook_tolerance : int
        Replay window for webhook timestamps, in seconds.
    """

    api_key: str
    environment: str = "production"
    base_url: str = API_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    debug: bool = False
    webhook_secret: str | None = None
    webhook_tolerance: int = DEFAULT_WEBHOOK_TOLERANCE

    def __post_init__(self) -> None:
        if not self.api_key:
            raise PassageConfigError("api_key is required")
        if self.environment not in ENVIRONMENTS:
            allowed = ", ".join(sorted(ENVIRONMENTS))
            raise PassageConfigError(f"environment must be one of {allowed}, got {self.environment!r}")
        if self.timeout <= 0:
            raise PassageConfigError(f"timeout must be positive, got {self.timeout}")
        if self.max_retries < 0:
            raise PassageConfigError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.webhook_tolerance < 0:
            raise PassageConfigError(f"webhook_tolerance must be >= 0, got {self.webhook_tolerance}")
        # Normalise so endpoint paths can always be appended with a leading "/".
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @property
    def is_sandbox(self) -> bool:
        return self.environment == "sandbox"

    @classmethod
    def from_env(cls, **overrides: Any) -> PassageConfig:
        """Create configuration from environment variables.

        Reads ``PASSAGE_API_KEY`` and optional ``PASSAGE_*`` variables.
        Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        PassageConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "PASSAGE_API_KEY": "api_key",
            "PASSAGE_ENVIRONMENT": "environment",
            "PASSAGE_BASE_URL": "base_url",
            "PASSAGE_WEBHOOK_SECRET": "webhook_secret",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        try:
            timeout_env = env.get("PASSAGE_TIMEOUT")
            if timeout_env is not None and "timeout" not in overrides:
                config_kwargs["timeout"] = float(timeout_env)

            retries_env = env.get("PASSAGE_MAX_RETRIES")
            if retries_env is not None and "max_retries" not in overrides:
                config_kwargs["max_retries"] = int(retries_env)

            tolerance_env = env.get("PASSAGE_WEBHOOK_TOLERANCE")
            if tolerance_env is not None and "webhook_tolerance" not in overrides:
                config_kwargs["webhook_tolerance"] = int(tolerance_env)
        except ValueError as exc:
            raise PassageConfigError(f"Invalid numeric PASSAGE_* environment value: {exc}") from exc

        if "debug" not in overrides:
            config_kwargs["debug"] = _env_bool(env.get("PASSAGE_DEBUG"), False)

        config_kwargs.update(overrides)
        config_kwargs.setdefault("api_key", "")

        return cls(**config_kwargs)

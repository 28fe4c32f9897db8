"""Advisor configuration loaded from environment variables.

The advisor endpoint, gateway and credentials are read once and passed
explicitly into the components that issue HTTP requests.  The decoder
itself takes no configuration.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any value is out
    of its valid range, so bad configuration is caught at startup rather
    than on the first advisor request.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from terrapulse.core.exceptions import TerraPulseError

DEFAULT_ADVISOR_URL = "http://localhost:7071/api/rural-advisor"
DEFAULT_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"
DEFAULT_MODEL = "google/gemini-3-flash-preview"
DEFAULT_TIMEOUT_S = 60.0


class ConfigValidationError(TerraPulseError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class AdvisorConfig:
    """Immutable advisor configuration.

    Attributes:
        advisor_url: Advisor proxy endpoint the client POSTs to.
        api_key: Bearer token sent to the advisor proxy (empty for none).
        gateway_url: Chat-completion gateway the proxy forwards to.
        gateway_api_key: Bearer token for the gateway (proxy side only).
        model: Gateway model identifier.
        timeout_s: Transport timeout in seconds.
    """

    advisor_url: str = DEFAULT_ADVISOR_URL
    api_key: str = ""
    gateway_url: str = DEFAULT_GATEWAY_URL
    gateway_api_key: str = ""
    model: str = DEFAULT_MODEL
    timeout_s: float = DEFAULT_TIMEOUT_S

    @classmethod
    def from_env(cls) -> AdvisorConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range or a
                required string value is empty.
            ValueError: If ``TERRAPULSE_TIMEOUT_S`` cannot be parsed.
        """
        config = cls(
            advisor_url=os.getenv("TERRAPULSE_ADVISOR_URL", DEFAULT_ADVISOR_URL),
            api_key=os.getenv("TERRAPULSE_API_KEY", ""),
            gateway_url=os.getenv("TERRAPULSE_GATEWAY_URL", DEFAULT_GATEWAY_URL),
            gateway_api_key=os.getenv("TERRAPULSE_GATEWAY_API_KEY", ""),
            model=os.getenv("TERRAPULSE_MODEL", DEFAULT_MODEL),
            timeout_s=float(os.getenv("TERRAPULSE_TIMEOUT_S", "60")),
        )
        _validate(config)
        return config


def _validate(config: AdvisorConfig) -> None:
    """Validate configuration values.  Raises ``ConfigValidationError``."""
    if not config.advisor_url.startswith(("http://", "https://")):
        raise ConfigValidationError(
            "TERRAPULSE_ADVISOR_URL",
            config.advisor_url,
            "must be an http(s) URL",
        )

    if not config.gateway_url.startswith(("http://", "https://")):
        raise ConfigValidationError(
            "TERRAPULSE_GATEWAY_URL",
            config.gateway_url,
            "must be an http(s) URL",
        )

    if not config.model.strip():
        raise ConfigValidationError(
            "TERRAPULSE_MODEL",
            config.model,
            "must not be empty",
        )

    if config.timeout_s <= 0:
        raise ConfigValidationError(
            "TERRAPULSE_TIMEOUT_S",
            config.timeout_s,
            "must be > 0 (seconds)",
        )

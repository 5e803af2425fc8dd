"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Client settings and explicit config loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .errors import ConfigurationError
from .utils import validate_api_key_format

DEFAULT_BASE_URL = "https://api.figma.com/v1"
DEMO_API_KEY = "demo"


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Immutable settings used by the transport and runtime modules."""

    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    timeout_s: float = 30.0
    retry_attempts: int = 3
    retry_delay_s: float = 1.0
    enable_caching: bool = True
    cache_ttl_s: float = 3600.0
    cache_sweep_interval_s: float = 60.0
    enable_rate_limiting: bool = True
    rate_limit_ceiling: int = 1000
    max_requests_per_minute: int = 60
    user_agent: str = "FigmaClient/1.0.0"

    def __post_init__(self) -> None:
        if not self.base_url.strip():
            raise ConfigurationError("base_url must be non-empty")
        if self.timeout_s <= 0:
            raise ConfigurationError("timeout_s must be > 0")
        if self.retry_attempts < 0:
            raise ConfigurationError("retry_attempts must be >= 0")
        if self.retry_delay_s < 0:
            raise ConfigurationError("retry_delay_s must be >= 0")
        if self.cache_ttl_s < 0:
            raise ConfigurationError("cache_ttl_s must be >= 0")
        if self.cache_sweep_interval_s <= 0:
            raise ConfigurationError("cache_sweep_interval_s must be > 0")
        if self.rate_limit_ceiling <= 0:
            raise ConfigurationError("rate_limit_ceiling must be > 0")
        if self.max_requests_per_minute <= 0:
            raise ConfigurationError("max_requests_per_minute must be > 0")

    @property
    def demo_mode(self) -> bool:
        """Whether the credential fails the format check and placeholder data is served."""
        return not validate_api_key_format(self.api_key)

    @property
    def effective_api_key(self) -> str:
        return DEMO_API_KEY if self.demo_mode else self.api_key

    @staticmethod
    def from_env() -> "ClientConfig":
        """Load settings from environment variables."""
        try:
            return ClientConfig(
                api_key=os.getenv("FIGMA_API_KEY", ""),
                base_url=os.getenv("FIGMA_API_BASE_URL", DEFAULT_BASE_URL),
                timeout_s=float(os.getenv("FIGMA_TIMEOUT_S", "30")),
                retry_attempts=int(os.getenv("FIGMA_RETRY_ATTEMPTS", "3")),
                retry_delay_s=float(os.getenv("FIGMA_RETRY_DELAY_S", "1")),
                cache_ttl_s=float(os.getenv("FIGMA_CACHE_TTL_S", "3600")),
                max_requests_per_minute=int(
                    os.getenv("FIGMA_MAX_REQUESTS_PER_MINUTE", "60")
                ),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid Figma client environment: {e}") from e

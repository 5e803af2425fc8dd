"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed runtime policies for Figma API request execution.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..settings import ClientConfig

NON_RETRYABLE_STATUSES = frozenset({400, 401, 403, 404, 422})
RETRYABLE_STATUSES = frozenset({408, 429})


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Retry semantics for one request path."""

    retry_attempts: int = 3
    backoff_base_s: float = 1.0


@dataclass(frozen=True, slots=True)
class TimeoutPolicy:
    request_timeout_s: float | None = 30.0


@dataclass(frozen=True, slots=True)
class RateLimitPolicy:
    """Seed values for the header-driven admission gate."""

    enabled: bool = True
    ceiling: int = 1000
    requests_per_minute: int = 60
    window_s: float = 60.0


@dataclass(frozen=True, slots=True)
class CachePolicy:
    """Response cache controls."""

    enabled: bool = True
    ttl_s: float = 3600.0
    sweep_interval_s: float = 60.0


@dataclass(frozen=True, slots=True)
class CoalescingPolicy:
    """In-flight request deduplication controls."""

    enabled: bool = True


@dataclass(frozen=True, slots=True)
class RuntimePolicies:
    """All runtime policies derived from one `ClientConfig`."""

    retry: RetryPolicy
    timeout: TimeoutPolicy
    rate_limit: RateLimitPolicy
    cache: CachePolicy
    coalescing: CoalescingPolicy

    @staticmethod
    def from_config(config: ClientConfig) -> "RuntimePolicies":
        return RuntimePolicies(
            retry=RetryPolicy(
                retry_attempts=config.retry_attempts,
                backoff_base_s=config.retry_delay_s,
            ),
            timeout=TimeoutPolicy(request_timeout_s=config.timeout_s),
            rate_limit=RateLimitPolicy(
                enabled=config.enable_rate_limiting,
                ceiling=config.rate_limit_ceiling,
                requests_per_minute=config.max_requests_per_minute,
            ),
            cache=CachePolicy(
                enabled=config.enable_caching,
                ttl_s=config.cache_ttl_s,
                sweep_interval_s=config.cache_sweep_interval_s,
            ),
            coalescing=CoalescingPolicy(),
        )

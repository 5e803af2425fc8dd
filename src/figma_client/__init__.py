"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: __init__.py.
"""

from __future__ import annotations

from .cache import CacheEntry, InMemoryResponseCache, ResponseCacheBackend
from .client import FigmaApiClient, create_figma_client
from .errors import (
    ClientClosedError,
    ConfigurationError,
    FigmaClientError,
    HttpError,
    InvalidResponseError,
    NetworkError,
    QueueCancelledError,
    RateLimitedError,
    RequestCancelledError,
    RequestTimeoutError,
    ValidationError,
)
from .runtime import (
    CachePolicy,
    CancellationSignal,
    CoalescingPolicy,
    RateLimitGate,
    RateLimitPolicy,
    RequestQueue,
    RetryController,
    RetryPolicy,
    RuntimePolicies,
    TimeoutPolicy,
)
from .settings import ClientConfig
from .transport import (
    HttpxTransport,
    PlaceholderTransport,
    RequestTarget,
    Transport,
    TransportResponse,
)
from .types import (
    ApiKeyValidationResult,
    CacheMetadata,
    CacheStats,
    FigmaFile,
    FigmaUser,
    Priority,
    RateLimitSnapshot,
    RequestOptions,
)
from .utils import (
    FigmaUrlValidation,
    extract_file_key_from_url,
    extract_node_id_from_url,
    validate_api_key_format,
    validate_figma_url,
)

__all__ = [
    "FigmaApiClient",
    "create_figma_client",
    "ClientConfig",
    "RequestOptions",
    "Priority",
    "FigmaFile",
    "FigmaUser",
    "ApiKeyValidationResult",
    "RateLimitSnapshot",
    "CacheStats",
    "CacheMetadata",
    "CacheEntry",
    "InMemoryResponseCache",
    "ResponseCacheBackend",
    "CancellationSignal",
    "RateLimitGate",
    "RequestQueue",
    "RetryController",
    "RetryPolicy",
    "TimeoutPolicy",
    "RateLimitPolicy",
    "CachePolicy",
    "CoalescingPolicy",
    "RuntimePolicies",
    "Transport",
    "TransportResponse",
    "RequestTarget",
    "HttpxTransport",
    "PlaceholderTransport",
    "FigmaClientError",
    "ConfigurationError",
    "ValidationError",
    "NetworkError",
    "HttpError",
    "RateLimitedError",
    "RequestTimeoutError",
    "RequestCancelledError",
    "QueueCancelledError",
    "InvalidResponseError",
    "ClientClosedError",
    "FigmaUrlValidation",
    "extract_file_key_from_url",
    "extract_node_id_from_url",
    "validate_api_key_format",
    "validate_figma_url",
]

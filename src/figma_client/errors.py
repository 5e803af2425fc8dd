"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed failure hierarchy surfaced by the Figma client runtime.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class FigmaClientError(Exception):
    """Base exception for all client failures."""


class ConfigurationError(FigmaClientError):
    """Raised when client configuration values are invalid."""


class ValidationError(FigmaClientError):
    """Raised for malformed caller input; never retried."""


class NetworkError(FigmaClientError):
    """Raised when no response was obtained (DNS failure, reset, socket timeout)."""


class HttpError(FigmaClientError):
    """Raised when the API answered with a non-2xx status."""

    def __init__(
        self,
        status: int,
        message: str,
        *,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(f"Figma API Error: {message} ({status})")
        self.status = status
        self.message = message
        self.details: dict[str, Any] = dict(details or {})


class RateLimitedError(HttpError):
    """Raised when the API rejects a call with HTTP 429."""

    def __init__(
        self,
        message: str,
        *,
        reset_at: float | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(429, message, details=details)
        self.reset_at = reset_at


class RequestTimeoutError(FigmaClientError):
    """Raised when the client-side timeout fires before the call settles."""


class RequestCancelledError(RequestTimeoutError):
    """Raised when a cancellation signal fires while a call is pending."""


class QueueCancelledError(FigmaClientError):
    """Raised for requests still queued when the client is aborted or destroyed."""


class InvalidResponseError(FigmaClientError):
    """Raised when a successful response body does not match its typed model."""


class ClientClosedError(FigmaClientError):
    """Raised when an operation is attempted after `destroy()`."""

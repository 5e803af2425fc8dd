"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Transport contracts shared by the real and placeholder strategies.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from ..errors import HttpError, InvalidResponseError, RateLimitedError
from ..types import JSONValue


@dataclass(frozen=True, slots=True)
class RequestTarget:
    """Method, absolute URL, headers, and optional JSON body of one call."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: JSONValue | None = None

    def cache_key(self) -> str:
        """
        Deterministic key for logically identical requests.

        Header names are case-folded and sorted so ordering never changes the
        key. The credential header is excluded; the cache is per client.
        """
        headers = {
            k.lower(): v
            for k, v in self.headers.items()
            if k.lower() != "x-figma-token"
        }
        payload = {
            "method": self.method.upper(),
            "headers": sorted(headers.items()),
            "body": self.body,
        }
        normalized = json.dumps(payload, ensure_ascii=True, sort_keys=True, default=str)
        digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()
        return f"{self.url}:{digest}"


@dataclass(frozen=True, slots=True)
class TransportResponse:
    """Raw response returned by one transport call."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    content: bytes = b""
    reason: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def request_id(self) -> str:
        return self.header("x-request-id") or ""

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    def json(self) -> Any:
        try:
            return json.loads(self.content.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise InvalidResponseError(
                f"Response body is not valid JSON (status {self.status})"
            ) from e


@runtime_checkable
class Transport(Protocol):
    """One HTTP call per `send`; raises `NetworkError` when no response arrives."""

    async def send(self, target: RequestTarget) -> TransportResponse: ...

    async def aclose(self) -> None: ...


def error_from_response(response: TransportResponse) -> HttpError:
    """Build the typed failure for a non-2xx response."""
    details: dict[str, Any] = {}
    try:
        decoded = json.loads(response.content.decode("utf-8")) if response.content else {}
    except (UnicodeDecodeError, ValueError):
        decoded = {}
    if isinstance(decoded, dict):
        details = decoded

    err = details.get("err")
    message = err if isinstance(err, str) and err else details.get("message")
    if not isinstance(message, str) or not message:
        message = response.reason or f"HTTP {response.status}"

    if response.status == 429:
        reset = response.header("x-ratelimit-reset")
        try:
            reset_at = float(reset) if reset is not None else None
        except ValueError:
            reset_at = None
        return RateLimitedError(message, reset_at=reset_at, details=details)
    return HttpError(response.status, message, details=details)

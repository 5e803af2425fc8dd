"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed request options, response payloads, and status snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from .runtime.timeouts import CancellationSignal

JSONValue: TypeAlias = (
    str | int | float | bool | None | list["JSONValue"] | dict[str, "JSONValue"]
)

Priority = Literal["low", "normal", "high"]

PRIORITY_RANK: dict[str, int] = {"high": 0, "normal": 1, "low": 2}


@dataclass(frozen=True, slots=True)
class RequestOptions:
    """
    Per-call controls accepted by the typed client operations.

    Attributes:
        signal: Cancellation signal scoped to this call.
        priority: Queue priority used when the admission gate is closed.
        use_cache: Whether the response cache may satisfy or store this call.
        bypass_rate_limit: Skip the admission gate and call directly.
        metadata: Free-form caller metadata, not sent on the wire.
    """

    signal: "CancellationSignal | None" = None
    priority: Priority = "normal"
    use_cache: bool = True
    bypass_rate_limit: bool = False
    metadata: dict[str, JSONValue] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RateLimitSnapshot:
    """Point-in-time copy of rate-limit state."""

    remaining: int
    reset: float
    limit: int
    queued: int = 0


@dataclass(frozen=True, slots=True)
class CacheMetadata:
    """
    Fetch metadata recorded next to every cached payload.

    `cache_hit` is True on entries returned by a cache lookup and False on the
    stored row. `caller_metadata` is the `RequestOptions.metadata` of the call
    that fetched the payload.
    """

    request_id: str = ""
    fetched_at: float = 0.0
    response_time_s: float = 0.0
    rate_limit: RateLimitSnapshot | None = None
    cache_hit: bool = False
    caller_metadata: dict[str, JSONValue] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CacheStats:
    size: int
    hit_rate: float
    entries: int
    hits: int = 0
    misses: int = 0


class FigmaModel(BaseModel):
    """Base payload model; unknown wire fields are kept in `extensions`."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @property
    def extensions(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class FigmaFile(FigmaModel):
    """`GET /files/{key}` payload."""

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    name: str
    last_modified: str | None = None
    thumbnail_url: str | None = None
    version: str | None = None
    role: str | None = None
    editor_type: str | None = None
    link_access: str | None = None
    schema_version: int = 0
    document: dict[str, Any] = {}
    components: dict[str, Any] = {}
    component_sets: dict[str, Any] = {}
    styles: dict[str, Any] = {}
    main_file_key: str | None = None
    branches: list[dict[str, Any]] | None = None


class FigmaUser(FigmaModel):
    """`GET /me` payload."""

    id: str
    handle: str
    email: str | None = None
    img_url: str | None = None


class ApiKeyValidationResult(FigmaModel):
    is_valid: bool
    user: FigmaUser | None = None
    error: str | None = None

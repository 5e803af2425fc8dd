"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/base.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar

from ..types import CacheMetadata, CacheStats

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    """One cached payload with expiration metadata."""

    value: T
    fetched_at: float
    expires_at: float
    metadata: CacheMetadata = field(default_factory=CacheMetadata)

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class ResponseCacheBackend(Protocol):
    """Protocol implemented by cache backends used in the runtime client."""

    backend_id: str

    def get(self, key: str) -> Any | None: ...

    def set(
        self,
        key: str,
        value: Any,
        *,
        ttl_s: float,
        metadata: CacheMetadata | None = None,
    ) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...

    def stats(self) -> CacheStats: ...

"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/rate_limit.py.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from ..types import RateLimitSnapshot
from .contracts import RateLimitPolicy

logger = logging.getLogger("figma_client.runtime.rate_limit")

REMAINING_HEADER = "x-ratelimit-remaining"
RESET_HEADER = "x-ratelimit-reset"
LIMIT_HEADER = "x-ratelimit-limit"


@dataclass(slots=True)
class RateLimitState:
    """Server quota view: remaining calls, reset instant (epoch seconds), ceiling."""

    remaining: int
    reset: float
    limit: int


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def parse_rate_limit_headers(
    headers: Mapping[str, str],
) -> tuple[int | None, int | None, int | None]:
    """Return `(remaining, reset_epoch, limit)` from case-insensitive headers."""
    lowered = {str(k).lower(): v for k, v in headers.items()}
    return (
        _parse_int(lowered.get(REMAINING_HEADER)),
        _parse_int(lowered.get(RESET_HEADER)),
        _parse_int(lowered.get(LIMIT_HEADER)),
    )


class RateLimitGate:
    """
    Admission gate driven by the server's rate-limit headers.

    The gate never sleeps or backs off itself. It answers `can_admit()` and
    absorbs header updates; callers decide whether to call directly or queue.
    """

    def __init__(
        self,
        policy: RateLimitPolicy | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._policy = policy or RateLimitPolicy()
        self._clock = clock
        self._state = RateLimitState(
            remaining=min(self._policy.ceiling, self._policy.requests_per_minute),
            reset=clock() + self._policy.window_s,
            limit=self._policy.ceiling,
        )
        self._listeners: list[Callable[[], None]] = []

    def subscribe(self, listener: Callable[[], None]) -> None:
        """Register a callback invoked after every state update."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener()

    @property
    def enabled(self) -> bool:
        return self._policy.enabled

    def can_admit(self) -> bool:
        """True when quota remains or the reset instant has passed."""
        if not self._policy.enabled:
            return True
        state = self._state
        return state.remaining > 0 or self._clock() >= state.reset

    def seconds_until_reset(self) -> float:
        return max(0.0, self._state.reset - self._clock())

    def update_from_headers(
        self,
        remaining: int | None,
        reset_epoch: float | None,
        limit: int | None,
    ) -> None:
        """Overwrite state with the server's view; absent values are left as-is."""
        state = self._state
        if remaining is not None:
            state.remaining = max(0, remaining)
        if reset_epoch is not None:
            state.reset = float(reset_epoch)
        if limit is not None:
            state.limit = limit
        logger.debug(
            "rate limit updated remaining=%s reset=%s limit=%s",
            state.remaining,
            state.reset,
            state.limit,
        )
        self._notify()

    def record_response(self, headers: Mapping[str, str]) -> None:
        """
        Absorb one real response.

        Header values win when present. Without headers the local prediction
        rolls the window once `reset` has passed and spends one call.
        """
        remaining, reset_epoch, limit = parse_rate_limit_headers(headers)
        if remaining is not None or reset_epoch is not None or limit is not None:
            self.update_from_headers(remaining, reset_epoch, limit)
            return

        state = self._state
        now = self._clock()
        if now >= state.reset:
            state.remaining = min(state.limit, self._policy.requests_per_minute)
            state.reset = now + self._policy.window_s
        state.remaining = max(0, state.remaining - 1)
        self._notify()

    def status(self, *, queued: int = 0) -> RateLimitSnapshot:
        state = self._state
        return RateLimitSnapshot(
            remaining=state.remaining,
            reset=state.reset,
            limit=state.limit,
            queued=queued,
        )

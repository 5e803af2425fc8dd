"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/retry.py.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from collections.abc import Awaitable, Callable, Iterable
from typing import Protocol, TypeVar

from ..errors import (
    FigmaClientError,
    HttpError,
    NetworkError,
    RequestTimeoutError,
)
from ..utils import backoff_delay
from .contracts import NON_RETRYABLE_STATUSES, RETRYABLE_STATUSES, RetryPolicy
from .timeouts import CancellationSignal, raise_if_fired, sleep_with_signals

T = TypeVar("T")

logger = logging.getLogger("figma_client.runtime.retry")


class SleepStrategy(Protocol):
    """Strategy responsible for sleeping between attempts."""

    def __call__(self, seconds: float) -> Awaitable[None]:
        raise NotImplementedError


def classify_error(error: Exception) -> FigmaClientError:
    """Map arbitrary exceptions onto the client error hierarchy."""
    if isinstance(error, FigmaClientError):
        return error
    if isinstance(error, (asyncio.TimeoutError, TimeoutError, socket.timeout)):
        return NetworkError(str(error) or "Socket timed out")
    if isinstance(error, (ConnectionError, OSError)):
        return NetworkError(str(error) or error.__class__.__name__)
    return FigmaClientError(str(error))


def is_retryable(error: Exception) -> bool:
    """Whether `error` may be retried, ignoring the attempt budget."""
    if isinstance(error, RequestTimeoutError):
        return False
    if isinstance(error, HttpError):
        if error.status in NON_RETRYABLE_STATUSES:
            return False
        return error.status in RETRYABLE_STATUSES or error.status >= 500
    return isinstance(error, NetworkError)


class RetryController:
    """Bounded, deterministic retry loop with exponential backoff."""

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        sleep: SleepStrategy | None = None,
    ) -> None:
        self._policy = policy or RetryPolicy()
        self._sleep = sleep or asyncio.sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def should_retry(self, error: Exception, attempt: int) -> bool:
        """Whether failed 1-based `attempt` may be followed by another one."""
        if attempt > self._policy.retry_attempts:
            return False
        return is_retryable(error)

    def next_delay(self, attempt: int) -> float:
        return backoff_delay(attempt, self._policy.backoff_base_s)

    async def run(
        self,
        fn: Callable[[], Awaitable[T]],
        *,
        signals: Iterable[CancellationSignal | None] = (),
    ) -> T:
        """Execute `fn` until success, a terminal failure, or an exhausted budget."""
        active = [s for s in signals if s is not None]
        attempt = 1
        while True:
            raise_if_fired(active)
            try:
                return await fn()
            except Exception as error:
                classified = classify_error(error)
                if not self.should_retry(classified, attempt):
                    if classified is error:
                        raise
                    raise classified from error

                delay = self.next_delay(attempt)
                logger.debug(
                    "attempt %d failed (%s); retrying in %.3fs",
                    attempt,
                    classified,
                    delay,
                )
                await sleep_with_signals(delay, signals=active, sleep=self._sleep)
                attempt += 1

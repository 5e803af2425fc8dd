"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/timeouts.py.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

from ..errors import RequestCancelledError, RequestTimeoutError

T = TypeVar("T")


class CancellationSignal:
    """
    One-shot cancellation flag that pending awaits can race against.

    Firing is idempotent; a fired signal stays fired.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def fired(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def fire(self, reason: str = "cancelled") -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


def _active(signals: Iterable[CancellationSignal | None]) -> list[CancellationSignal]:
    return [s for s in signals if s is not None]


def raise_if_fired(signals: Iterable[CancellationSignal | None]) -> None:
    """Raise `RequestCancelledError` when any signal has already fired."""
    for signal in _active(signals):
        if signal.fired:
            raise RequestCancelledError(f"Request {signal.reason or 'cancelled'}")


async def race_with_signals(
    awaitable: Awaitable[T],
    *,
    timeout_s: float | None,
    signals: Iterable[CancellationSignal | None] = (),
) -> T:
    """
    Await value, losing to the first fired signal or the timeout.

    The losing side is always cancelled and awaited before returning, so no
    timer or transport task outlives the call.
    """
    active = _active(signals)
    try:
        raise_if_fired(active)
    except RequestCancelledError:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise

    work = asyncio.ensure_future(awaitable)
    watchers = [asyncio.create_task(signal.wait()) for signal in active]
    try:
        done, _ = await asyncio.wait(
            {work, *watchers},
            timeout=timeout_s,
            return_when=asyncio.FIRST_COMPLETED,
        )
        if work in done:
            return work.result()
        raise_if_fired(active)
        raise RequestTimeoutError(f"Request timed out after {timeout_s}s")
    finally:
        pending = [f for f in (work, *watchers) if not f.done()]
        for f in pending:
            f.cancel()
        await asyncio.gather(*pending, return_exceptions=True)


async def sleep_with_signals(
    delay_s: float,
    *,
    signals: Iterable[CancellationSignal | None] = (),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """Sleep for `delay_s` unless a signal fires first."""
    await race_with_signals(sleep(max(0.0, delay_s)), timeout_s=None, signals=signals)

"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Priority request queue drained by one background processor.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from ..errors import QueueCancelledError, RequestCancelledError
from ..transport.base import RequestTarget
from ..types import PRIORITY_RANK, Priority
from .rate_limit import RateLimitGate
from .timeouts import CancellationSignal

logger = logging.getLogger("figma_client.runtime.queue")

Job = Callable[[], Awaitable[Any]]


@dataclass(slots=True)
class QueuedRequest:
    """
    One call parked behind the admission gate.

    Attributes:
        target: Request descriptor, kept for introspection and logging.
        job: Coroutine factory running the full execution pipeline.
        future: Continuation settled exactly once by the processor.
        priority: ``high`` > ``normal`` > ``low``.
        signal: Per-call cancellation signal, checked before execution.
        id: Short request identifier.
        enqueued_at: Wall-clock enqueue timestamp.
        sequence: Monotonic tie-break for identical timestamps.
    """

    target: RequestTarget
    job: Job
    future: asyncio.Future[Any]
    priority: Priority = "normal"
    signal: CancellationSignal | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:9])
    enqueued_at: float = field(default_factory=time.time)
    sequence: int = 0

    def sort_key(self) -> tuple[int, float, int]:
        return (PRIORITY_RANK[self.priority], self.enqueued_at, self.sequence)

    def resolve(self, value: Any) -> bool:
        if self.future.done():
            return False
        self.future.set_result(value)
        return True

    def reject(self, error: BaseException) -> bool:
        if self.future.done():
            return False
        self.future.set_exception(error)
        return True


class RequestQueue:
    """
    Strict priority queue (then FIFO) for calls denied admission.

    A single processor task pulls one request at a time whenever the gate
    admits, runs it to completion, settles its future, then moves on. While
    the gate is closed the processor sleeps until the reset instant; gate
    updates, new enqueues, and `close()` wake it early.
    """

    def __init__(self, gate: RateLimitGate) -> None:
        self._gate = gate
        self._heap: list[tuple[tuple[int, float, int], QueuedRequest]] = []
        self._sequence = itertools.count()
        self._wakeup = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._closed = False
        gate.subscribe(self.notify)

    def notify(self) -> None:
        """Wake the processor so it re-checks the gate."""
        self._wakeup.set()

    @property
    def pending(self) -> int:
        return sum(1 for _, request in self._heap if not request.future.done())

    @property
    def closed(self) -> bool:
        return self._closed

    def enqueue(
        self,
        target: RequestTarget,
        job: Job,
        *,
        priority: Priority = "normal",
        signal: CancellationSignal | None = None,
    ) -> asyncio.Future[Any]:
        """Park one call and return the future the processor will settle."""
        if self._closed:
            raise QueueCancelledError("Request queue is closed")
        if priority not in PRIORITY_RANK:
            raise ValueError(f"Unknown priority '{priority}'")

        loop = asyncio.get_running_loop()
        request = QueuedRequest(
            target=target,
            job=job,
            future=loop.create_future(),
            priority=priority,
            signal=signal,
            sequence=next(self._sequence),
        )
        heapq.heappush(self._heap, (request.sort_key(), request))
        request.future.add_done_callback(lambda _: self._discard(request))
        logger.debug(
            "queued request id=%s priority=%s url=%s pending=%d",
            request.id,
            priority,
            target.url,
            len(self._heap),
        )
        self._wakeup.set()
        self.start()
        return request.future

    def dequeue(self) -> QueuedRequest | None:
        """Pop the next request in priority-then-FIFO order."""
        if not self._heap:
            return None
        _, request = heapq.heappop(self._heap)
        return request

    def _discard(self, request: QueuedRequest) -> None:
        # Entries settled outside the processor leave the heap immediately.
        remaining = [item for item in self._heap if item[1] is not request]
        if len(remaining) != len(self._heap):
            self._heap = remaining
            heapq.heapify(self._heap)
            logger.debug("dropped settled request id=%s pending=%d", request.id, len(self._heap))

    def reject_all(self, reason: str = "Request queue cancelled") -> int:
        """Reject every queued request with `QueueCancelledError`."""
        rejected = 0
        while self._heap:
            _, request = heapq.heappop(self._heap)
            if request.reject(QueueCancelledError(reason)):
                rejected += 1
        if rejected:
            logger.debug("rejected %d queued request(s): %s", rejected, reason)
        return rejected

    async def close(self) -> None:
        """Reject queued work and stop the processor."""
        self._closed = True
        self.reject_all("Request queue closed")
        self._wakeup.set()
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    def start(self) -> None:
        """Start the processor task on the running loop; idempotent."""
        if self._closed:
            return
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._process())

    async def _process(self) -> None:
        while not self._closed:
            if not self._heap:
                self._wakeup.clear()
                await self._wakeup.wait()
                continue

            if not self._gate.can_admit():
                delay_s = self._gate.seconds_until_reset()
                logger.debug("gate closed; processor waiting %.3fs", delay_s)
                self._wakeup.clear()
                try:
                    await asyncio.wait_for(self._wakeup.wait(), timeout=delay_s)
                except asyncio.TimeoutError:
                    pass
                continue

            request = self.dequeue()
            if request is not None:
                await self._execute(request)

    async def _execute(self, request: QueuedRequest) -> None:
        if request.future.done():
            return
        if request.signal is not None and request.signal.fired:
            request.reject(RequestCancelledError("Request cancelled while queued"))
            return

        try:
            result = await request.job()
        except asyncio.CancelledError:
            request.reject(QueueCancelledError("Request queue closed"))
            raise
        except Exception as error:  # noqa: BLE001
            request.reject(error)
        else:
            request.resolve(result)

"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: client.py.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar
from urllib.parse import quote

from pydantic import ValidationError as PydanticValidationError

from .cache import InMemoryResponseCache
from .errors import (
    ClientClosedError,
    FigmaClientError,
    InvalidResponseError,
    ValidationError,
)
from .runtime.coalescing import RequestCoalescer
from .runtime.contracts import RuntimePolicies
from .runtime.queue import RequestQueue
from .runtime.rate_limit import RateLimitGate
from .runtime.retry import RetryController, SleepStrategy
from .runtime.timeouts import CancellationSignal, race_with_signals
from .settings import ClientConfig
from .transport import (
    HttpxTransport,
    PlaceholderTransport,
    RequestTarget,
    Transport,
    TransportResponse,
    error_from_response,
)
from .types import (
    ApiKeyValidationResult,
    CacheMetadata,
    CacheStats,
    FigmaFile,
    FigmaModel,
    FigmaUser,
    RateLimitSnapshot,
    RequestOptions,
)
from .utils import validate_api_key_format

M = TypeVar("M", bound=FigmaModel)

logger = logging.getLogger("figma_client.client")


class FigmaApiClient:
    """
    Typed Figma API client with caching, quota-aware queueing, and retries.

    Every operation follows the same pipeline: cache lookup, in-flight
    coalescing, admission (direct call or priority queue), transport call
    under timeout and cancellation, retry classification, cache store.

    A credential that fails the `figd_...` format check selects the
    placeholder transport once at construction; no network call is made.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: Transport | None = None,
        cache: InMemoryResponseCache | None = None,
        clock: Callable[[], float] = time.time,
        sleep: SleepStrategy | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self._policies = RuntimePolicies.from_config(self.config)
        self._clock = clock

        self._transport: Transport
        if self.config.demo_mode:
            if transport is not None:
                logger.debug("credential failed format check; ignoring supplied transport")
            self._transport = PlaceholderTransport()
        else:
            self._transport = transport or HttpxTransport(timeout_s=self.config.timeout_s)

        self._cache = cache or InMemoryResponseCache(
            sweep_interval_s=self._policies.cache.sweep_interval_s,
            clock=clock,
        )
        self._gate = RateLimitGate(self._policies.rate_limit, clock=clock)
        self._retry = RetryController(self._policies.retry, sleep=sleep)
        self._queue = RequestQueue(self._gate)
        self._coalescer = RequestCoalescer()
        self._abort_signal = CancellationSignal()
        self._closed = False

    @property
    def demo_mode(self) -> bool:
        return self.config.demo_mode

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> "FigmaApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.destroy()

    # ------------------------------------------------------------------
    # Typed operations
    # ------------------------------------------------------------------

    async def get_file(
        self,
        file_key: str,
        options: RequestOptions | None = None,
    ) -> FigmaFile:
        """Fetch one design file (`GET /files/{file_key}`)."""
        key = file_key.strip() if isinstance(file_key, str) else ""
        if not key:
            raise ValidationError("file_key is required")
        return await self._request(f"/files/{quote(key, safe='')}", FigmaFile, options)

    async def get_user(self, options: RequestOptions | None = None) -> FigmaUser:
        """Fetch the identity behind the credential (`GET /me`)."""
        return await self._request("/me", FigmaUser, options)

    async def validate_api_key(self) -> ApiKeyValidationResult:
        """
        Check the credential.

        The structural format check runs first and never touches the network.
        A well-formed key is then confirmed against `/me`; failures are
        reported in the result rather than raised.
        """
        if not validate_api_key_format(self.config.api_key):
            return ApiKeyValidationResult(
                is_valid=False,
                error="API key format is invalid; expected a 'figd_' personal access token",
            )
        try:
            user = await self.get_user()
        except ClientClosedError:
            raise
        except FigmaClientError as e:
            return ApiKeyValidationResult(is_valid=False, error=str(e) or "Invalid API key")
        return ApiKeyValidationResult(is_valid=True, user=user)

    # ------------------------------------------------------------------
    # Status and lifecycle
    # ------------------------------------------------------------------

    def get_rate_limit_status(self) -> RateLimitSnapshot:
        return self._gate.status(queued=self._queue.pending)

    def get_cache_stats(self) -> CacheStats:
        return self._cache.stats()

    def clear_cache(self) -> None:
        self._cache.clear()

    def abort(self) -> None:
        """Cancel in-flight calls and reject every queued request."""
        signal = self._abort_signal
        self._abort_signal = CancellationSignal()
        signal.fire("aborted")
        self._queue.reject_all("Request aborted")

    async def destroy(self) -> None:
        """Abort, clear the cache, and release the queue, sweep task, and transport."""
        if self._closed:
            return
        self.abort()
        self._closed = True
        self._cache.clear()
        await self._queue.close()
        await self._cache.close()
        await self._transport.aclose()

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _target(self, path: str) -> RequestTarget:
        return RequestTarget(
            method="GET",
            url=f"{self.config.base_url.rstrip('/')}{path}",
            headers={
                "X-Figma-Token": self.config.effective_api_key,
                "Accept": "application/json",
                "User-Agent": self.config.user_agent,
            },
        )

    async def _request(
        self,
        path: str,
        model: type[M],
        options: RequestOptions | None,
    ) -> M:
        if self._closed:
            raise ClientClosedError("Client has been destroyed")
        opts = options or RequestOptions()
        target = self._target(path)
        key = target.cache_key()

        use_cache = opts.use_cache and self._policies.cache.enabled
        if use_cache:
            self._cache.start()
            entry = self._cache.get_entry(key)
            if entry is not None:
                logger.debug(
                    "cache hit url=%s request_id=%s",
                    target.url,
                    entry.metadata.request_id,
                )
                return entry.value

        async def _run() -> M:
            return await self._admit(target, key, model, opts, use_cache=use_cache)

        if use_cache and self._policies.coalescing.enabled and opts.signal is None:
            return await self._coalescer.run(key, _run)
        return await _run()

    async def _admit(
        self,
        target: RequestTarget,
        key: str,
        model: type[M],
        opts: RequestOptions,
        *,
        use_cache: bool,
    ) -> M:
        async def _job() -> M:
            return await self._execute(target, key, model, opts, use_cache=use_cache)

        if opts.bypass_rate_limit or self._gate.can_admit():
            return await _job()

        future = self._queue.enqueue(
            target,
            _job,
            priority=opts.priority,
            signal=opts.signal,
        )
        return await race_with_signals(future, timeout_s=None, signals=(opts.signal,))

    async def _execute(
        self,
        target: RequestTarget,
        key: str,
        model: type[M],
        opts: RequestOptions,
        *,
        use_cache: bool,
    ) -> M:
        signals = (self._abort_signal, opts.signal)
        started = time.monotonic()
        response = await self._retry.run(
            lambda: self._send_once(target, signals),
            signals=signals,
        )
        value = self._parse(response, model)
        if use_cache:
            self._cache.set(
                key,
                value,
                ttl_s=self._policies.cache.ttl_s,
                metadata=CacheMetadata(
                    request_id=response.request_id,
                    fetched_at=self._clock(),
                    response_time_s=time.monotonic() - started,
                    rate_limit=self._gate.status(),
                    caller_metadata=dict(opts.metadata),
                ),
            )
        return value

    async def _send_once(
        self,
        target: RequestTarget,
        signals: tuple[CancellationSignal | None, ...],
    ) -> TransportResponse:
        response = await race_with_signals(
            self._transport.send(target),
            timeout_s=self._policies.timeout.request_timeout_s,
            signals=signals,
        )
        self._gate.record_response(response.headers)
        if not response.ok:
            raise error_from_response(response)
        return response

    @staticmethod
    def _parse(response: TransportResponse, model: type[M]) -> M:
        try:
            return model.model_validate(response.json())
        except PydanticValidationError as e:
            raise InvalidResponseError(
                f"Unexpected {model.__name__} payload: {e.error_count()} validation error(s)"
            ) from e


def create_figma_client(api_key: str = "", **overrides: Any) -> FigmaApiClient:
    """Build a client from a credential plus optional `ClientConfig` overrides."""
    return FigmaApiClient(ClientConfig(api_key=api_key, **overrides))

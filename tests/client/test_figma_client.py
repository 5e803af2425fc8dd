from __future__ import annotations

import asyncio
import time

import httpx
import pytest

from figma_client import (
    CancellationSignal,
    ClientConfig,
    FigmaApiClient,
    FigmaFile,
    FigmaUser,
    HttpxTransport,
    InMemoryResponseCache,
    RequestOptions,
    create_figma_client,
)
from figma_client.errors import (
    ClientClosedError,
    HttpError,
    InvalidResponseError,
    QueueCancelledError,
    RequestCancelledError,
    RequestTimeoutError,
    ValidationError,
)


def run_async(coro):
    return asyncio.run(coro)


VALID_KEY = "figd_" + "a1B2c3D4e5" * 2 + "F6g7h"
BASE_URL = "https://api.figma.test/v1"

USER = {"id": "42", "email": "ada@example.com", "handle": "ada", "img_url": "https://img/ada.png"}
FILE = {
    "name": "Checkout",
    "lastModified": "2026-01-01T00:00:00Z",
    "thumbnailUrl": "https://img/thumb.png",
    "version": "7",
    "role": "editor",
    "editorType": "figma",
    "schemaVersion": 0,
    "document": {"id": "0:0", "type": "DOCUMENT"},
    "components": {},
    "styles": {},
    "experimentalField": {"x": 1},
}


class Sleeps:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_client(handler, *, sleep=None, clock=None, api_key=VALID_KEY, **overrides):
    config = ClientConfig(api_key=api_key, base_url=BASE_URL, **overrides)
    return FigmaApiClient(
        config,
        transport=HttpxTransport(transport=httpx.MockTransport(handler)),
        sleep=sleep or Sleeps(),
        clock=clock or time.time,
    )


def ok_handler(calls: list[httpx.Request], *, delay_s: float = 0.0, headers=None):
    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if delay_s:
            await asyncio.sleep(delay_s)
        payload = USER if request.url.path.endswith("/me") else FILE
        return httpx.Response(200, json=payload, headers=headers or {})

    return handler


def exhausted_headers() -> dict[str, str]:
    return {
        "x-ratelimit-remaining": "0",
        "x-ratelimit-reset": str(int(time.time()) + 60),
        "x-ratelimit-limit": "100",
    }


def test_get_file_returns_typed_model_with_extensions():
    calls: list[httpx.Request] = []

    async def scenario():
        async with make_client(ok_handler(calls)) as client:
            return await client.get_file("abc123")

    result = run_async(scenario())
    assert isinstance(result, FigmaFile)
    assert result.name == "Checkout"
    assert result.last_modified == "2026-01-01T00:00:00Z"
    assert result.editor_type == "figma"
    assert result.extensions == {"experimentalField": {"x": 1}}

    request = calls[0]
    assert request.method == "GET"
    assert str(request.url) == f"{BASE_URL}/files/abc123"
    assert request.headers["x-figma-token"] == VALID_KEY
    assert request.headers["accept"] == "application/json"
    assert request.headers["user-agent"] == "FigmaClient/1.0.0"


def test_repeated_get_user_is_served_from_cache():
    calls: list[httpx.Request] = []

    async def scenario():
        async with make_client(ok_handler(calls)) as client:
            first = await client.get_user()
            second = await client.get_user()
            return first, second, client.get_cache_stats()

    first, second, stats = run_async(scenario())
    assert isinstance(first, FigmaUser)
    assert first == second
    assert len(calls) == 1
    assert (stats.size, stats.entries, stats.hits, stats.misses) == (1, 1, 1, 1)
    assert stats.hit_rate == 0.5


def test_concurrent_identical_calls_share_one_request():
    calls: list[httpx.Request] = []

    async def scenario():
        async with make_client(ok_handler(calls, delay_s=0.02)) as client:
            return await asyncio.gather(client.get_user(), client.get_user(), client.get_user())

    results = run_async(scenario())
    assert len(calls) == 1
    assert results[0] == results[1] == results[2]


def test_use_cache_false_always_calls_transport():
    calls: list[httpx.Request] = []

    async def scenario():
        async with make_client(ok_handler(calls)) as client:
            await client.get_user(RequestOptions(use_cache=False))
            await client.get_user(RequestOptions(use_cache=False))
            return client.get_cache_stats()

    stats = run_async(scenario())
    assert len(calls) == 2
    assert stats.size == 0


def test_cache_entry_expires_after_ttl():
    calls: list[httpx.Request] = []
    clock = FakeClock()

    async def scenario():
        async with make_client(ok_handler(calls), clock=clock, cache_ttl_s=10) as client:
            await client.get_user()
            clock.now += 5
            await client.get_user()
            clock.now += 6
            await client.get_user()

    run_async(scenario())
    assert len(calls) == 2


def test_server_errors_retry_with_backoff_then_surface():
    calls: list[httpx.Request] = []
    sleeps = Sleeps()

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503, json={"status": 503, "err": "Service unavailable"})

    async def scenario():
        async with make_client(handler, sleep=sleeps, retry_delay_s=0.5) as client:
            await client.get_file("abc")

    with pytest.raises(HttpError) as excinfo:
        run_async(scenario())
    assert excinfo.value.status == 503
    assert excinfo.value.message == "Service unavailable"
    assert len(calls) == 4
    assert sleeps.delays == [0.5, 1.0, 2.0]


def test_transient_failure_recovers_on_retry():
    calls: list[httpx.Request] = []
    sleeps = Sleeps()

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("reset", request=request)
        if len(calls) == 2:
            return httpx.Response(429, json={"status": 429, "err": "Rate limit exceeded"})
        return httpx.Response(200, json=USER)

    async def scenario():
        async with make_client(handler, sleep=sleeps) as client:
            return await client.get_user()

    user = run_async(scenario())
    assert user.handle == "ada"
    assert len(calls) == 3
    assert sleeps.delays == [1.0, 2.0]


def test_client_errors_are_not_retried():
    calls: list[httpx.Request] = []
    sleeps = Sleeps()

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(404, json={"status": 404, "err": "Not found"})

    async def scenario():
        async with make_client(handler, sleep=sleeps) as client:
            await client.get_file("missing")

    with pytest.raises(HttpError, match=r"Figma API Error: Not found \(404\)"):
        run_async(scenario())
    assert len(calls) == 1
    assert sleeps.delays == []


def test_error_responses_still_update_rate_limit_state():
    reset = int(time.time()) + 120

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            403,
            json={"status": 403, "err": "Forbidden"},
            headers={
                "x-ratelimit-remaining": "17",
                "x-ratelimit-reset": str(reset),
                "x-ratelimit-limit": "250",
            },
        )

    async def scenario():
        async with make_client(handler) as client:
            with pytest.raises(HttpError):
                await client.get_file("locked")
            return client.get_rate_limit_status()

    status = run_async(scenario())
    assert (status.remaining, status.reset, status.limit, status.queued) == (
        17,
        float(reset),
        250,
        0,
    )


def test_unexpected_payload_raises_invalid_response():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"unexpected": True})

    async def scenario():
        async with make_client(handler) as client:
            await client.get_user()

    with pytest.raises(InvalidResponseError):
        run_async(scenario())


def test_empty_file_key_is_rejected_locally():
    calls: list[httpx.Request] = []

    async def scenario():
        async with make_client(ok_handler(calls)) as client:
            await client.get_file("  ")

    with pytest.raises(ValidationError):
        run_async(scenario())
    assert calls == []


def test_timeout_is_terminal():
    calls: list[httpx.Request] = []

    async def scenario():
        async with make_client(ok_handler(calls, delay_s=1.0), timeout_s=0.05) as client:
            await client.get_user()

    with pytest.raises(RequestTimeoutError):
        run_async(scenario())
    assert len(calls) == 1


def test_abort_cancels_in_flight_call_without_retry():
    calls: list[httpx.Request] = []

    async def scenario():
        async with make_client(ok_handler(calls, delay_s=1.0)) as client:
            task = asyncio.create_task(client.get_user())
            await asyncio.sleep(0.02)
            client.abort()
            await task

    with pytest.raises(RequestCancelledError):
        run_async(scenario())
    assert len(calls) == 1


def test_per_call_signal_cancels_only_that_call():
    calls: list[httpx.Request] = []

    async def scenario():
        async with make_client(ok_handler(calls, delay_s=0.05)) as client:
            signal = CancellationSignal()
            cancelled = asyncio.create_task(client.get_file("one", RequestOptions(signal=signal)))
            other = asyncio.create_task(client.get_file("two"))
            await asyncio.sleep(0.01)
            signal.fire()
            outcomes = await asyncio.gather(cancelled, other, return_exceptions=True)
            return outcomes

    cancelled, other = run_async(scenario())
    assert isinstance(cancelled, RequestCancelledError)
    assert isinstance(other, FigmaFile)


def test_exhausted_quota_queues_and_abort_rejects_queued_requests():
    calls: list[httpx.Request] = []

    async def scenario():
        async with make_client(ok_handler(calls, headers=exhausted_headers())) as client:
            await client.get_file("prime")
            status = client.get_rate_limit_status()
            assert status.remaining == 0

            tasks = [asyncio.create_task(client.get_file(key)) for key in ("a", "b", "c")]
            await asyncio.sleep(0.02)
            queued = client.get_rate_limit_status().queued

            client.abort()
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)
            return queued, outcomes

    queued, outcomes = run_async(scenario())
    assert queued == 3
    assert all(isinstance(outcome, QueueCancelledError) for outcome in outcomes)
    assert len(calls) == 1


def test_fresh_headers_drain_queue_in_priority_order():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if request.url.path.endswith("/prime"):
            headers = exhausted_headers()
        else:
            headers = {"x-ratelimit-remaining": "5"}
        return httpx.Response(200, json=FILE, headers=headers)

    async def scenario():
        async with make_client(handler) as client:
            await client.get_file("prime")
            low = asyncio.create_task(client.get_file("low", RequestOptions(priority="low")))
            high = asyncio.create_task(client.get_file("high", RequestOptions(priority="high")))
            await asyncio.sleep(0.02)
            assert len(calls) == 1

            await client.get_file("bypass", RequestOptions(bypass_rate_limit=True))
            await asyncio.gather(low, high)

    run_async(scenario())
    assert [request.url.path.rsplit("/", 1)[-1] for request in calls] == [
        "prime",
        "bypass",
        "high",
        "low",
    ]


def test_demo_mode_serves_placeholders_without_network():
    calls: list[httpx.Request] = []

    async def scenario(api_key: str):
        async with make_client(ok_handler(calls), api_key=api_key) as client:
            assert client.demo_mode
            design = await client.get_file("anything")
            user = await client.get_user()
            validation = await client.validate_api_key()
            return design, user, validation

    for api_key in ("demo", "", "not-a-figma-token"):
        design, user, validation = run_async(scenario(api_key))
        assert design.name == "Demo Design File"
        assert user.id == "demo"
        assert validation.is_valid is False
    assert calls == []


def test_validate_api_key_confirms_well_formed_key():
    calls: list[httpx.Request] = []

    async def scenario():
        async with make_client(ok_handler(calls)) as client:
            assert not client.demo_mode
            return await client.validate_api_key()

    result = run_async(scenario())
    assert result.is_valid is True
    assert result.user is not None and result.user.handle == "ada"
    assert len(calls) == 1


def test_validate_api_key_reports_rejected_key():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"status": 403, "err": "Invalid token"})

    async def scenario():
        async with make_client(handler) as client:
            return await client.validate_api_key()

    result = run_async(scenario())
    assert result.is_valid is False
    assert result.user is None
    assert "Invalid token" in (result.error or "")


def test_destroy_releases_client_and_rejects_later_calls():
    calls: list[httpx.Request] = []

    async def scenario():
        client = make_client(ok_handler(calls))
        await client.get_user()
        await client.destroy()
        await client.destroy()
        assert client.closed
        assert client.get_cache_stats().size == 0
        with pytest.raises(ClientClosedError):
            await client.get_user()
        with pytest.raises(ClientClosedError):
            await client.validate_api_key()

    run_async(scenario())
    assert len(calls) == 1


def test_clear_cache_forces_refetch():
    calls: list[httpx.Request] = []

    async def scenario():
        async with make_client(ok_handler(calls)) as client:
            await client.get_user()
            client.clear_cache()
            await client.get_user()

    run_async(scenario())
    assert len(calls) == 2


def test_create_figma_client_applies_overrides():
    async def scenario():
        client = create_figma_client(VALID_KEY, retry_attempts=1, enable_caching=False)
        try:
            return client.config, client.demo_mode
        finally:
            await client.destroy()

    config, demo_mode = run_async(scenario())
    assert config.retry_attempts == 1
    assert config.enable_caching is False
    assert demo_mode is False


def test_cancelled_queued_call_no_longer_counts_as_queued():
    calls: list[httpx.Request] = []

    async def scenario():
        async with make_client(ok_handler(calls, headers=exhausted_headers())) as client:
            await client.get_file("prime")
            signal = CancellationSignal()
            task = asyncio.create_task(client.get_file("a", RequestOptions(signal=signal)))
            await asyncio.sleep(0.02)
            queued_before = client.get_rate_limit_status().queued

            signal.fire()
            with pytest.raises(RequestCancelledError):
                await task
            return queued_before, client.get_rate_limit_status().queued

    queued_before, queued_after = run_async(scenario())
    assert queued_before == 1
    assert queued_after == 0
    assert len(calls) == 1


def test_queued_calls_drain_in_priority_order_once_reset_passes():
    calls: list[tuple[str, float]] = []
    reset_at = int(time.time()) + 2

    def handler(request: httpx.Request) -> httpx.Response:
        name = request.url.path.rsplit("/", 1)[-1]
        calls.append((name, time.time()))
        headers = {}
        if name == "prime":
            headers = {
                "x-ratelimit-remaining": "0",
                "x-ratelimit-reset": str(reset_at),
                "x-ratelimit-limit": "100",
            }
        return httpx.Response(200, json=FILE, headers=headers)

    async def scenario():
        async with make_client(handler) as client:
            await client.get_file("prime")
            low = asyncio.create_task(client.get_file("low", RequestOptions(priority="low")))
            high = asyncio.create_task(client.get_file("high", RequestOptions(priority="high")))
            await asyncio.sleep(0.02)
            assert client.get_rate_limit_status().queued == 2
            await asyncio.gather(low, high)

    run_async(scenario())
    assert [name for name, _ in calls] == ["prime", "high", "low"]
    assert all(started >= reset_at for _, started in calls[1:])


def test_cache_entries_record_caller_metadata_and_hits():
    cache = InMemoryResponseCache()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=USER, headers={"x-request-id": "req-77"})

    async def scenario():
        client = FigmaApiClient(
            ClientConfig(api_key=VALID_KEY, base_url=BASE_URL),
            transport=HttpxTransport(transport=httpx.MockTransport(handler)),
            cache=cache,
            sleep=Sleeps(),
        )
        async with client:
            await client.get_user(RequestOptions(metadata={"trace_id": "t-1"}))
            (key,) = cache.keys()
            return cache.get_entry(key)

    entry = run_async(scenario())
    assert entry is not None
    assert entry.metadata.caller_metadata == {"trace_id": "t-1"}
    assert entry.metadata.request_id == "req-77"
    assert entry.metadata.cache_hit is True

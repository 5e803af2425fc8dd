from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from figma_client.errors import (
    HttpError,
    InvalidResponseError,
    NetworkError,
    RateLimitedError,
)
from figma_client.transport import (
    HttpxTransport,
    PlaceholderTransport,
    RequestTarget,
    Transport,
    TransportResponse,
    error_from_response,
)


def run_async(coro):
    return asyncio.run(coro)


URL = "https://api.figma.test/v1/files/abc"


def test_cache_key_ignores_header_order_case_and_credential():
    one = RequestTarget(
        "GET",
        URL,
        {"Accept": "application/json", "User-Agent": "ua", "X-Figma-Token": "figd_a"},
    )
    two = RequestTarget(
        "get",
        URL,
        {"user-agent": "ua", "accept": "application/json", "X-Figma-Token": "figd_b"},
    )

    assert one.cache_key() == two.cache_key()
    assert one.cache_key().startswith(f"{URL}:")


def test_cache_key_changes_with_body_and_url():
    base = RequestTarget("GET", URL)

    assert base.cache_key() != RequestTarget("GET", URL, body={"a": 1}).cache_key()
    assert base.cache_key() != RequestTarget("GET", URL + "x").cache_key()


def test_httpx_transport_returns_non_2xx_as_response():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            404,
            json={"status": 404, "err": "Not found"},
            headers={"X-Request-Id": "req-9", "X-RateLimit-Remaining": "12"},
        )

    async def scenario():
        transport = HttpxTransport(transport=httpx.MockTransport(handler))
        try:
            return await transport.send(
                RequestTarget("GET", URL, {"X-Figma-Token": "figd_k"})
            )
        finally:
            await transport.aclose()

    response = run_async(scenario())
    assert isinstance(response, TransportResponse)
    assert response.status == 404
    assert not response.ok
    assert response.request_id == "req-9"
    assert response.header("X-RATELIMIT-REMAINING") == "12"
    assert response.json() == {"status": 404, "err": "Not found"}
    assert seen[0].headers["x-figma-token"] == "figd_k"


def test_httpx_transport_maps_connection_failures_to_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def scenario():
        transport = HttpxTransport(transport=httpx.MockTransport(handler))
        try:
            await transport.send(RequestTarget("GET", URL))
        finally:
            await transport.aclose()

    with pytest.raises(NetworkError, match="connection refused"):
        run_async(scenario())


def test_httpx_transport_leaves_borrowed_client_open():
    async def scenario():
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={}))
        )
        transport = HttpxTransport(client=client)
        await transport.send(RequestTarget("GET", URL))
        await transport.aclose()
        closed = client.is_closed
        await client.aclose()
        return closed

    assert run_async(scenario()) is False


def test_error_message_precedence():
    def response(status: int, body: object, reason: str = "") -> TransportResponse:
        raw = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
        return TransportResponse(status=status, content=raw, reason=reason)

    err = error_from_response(response(403, {"err": "Invalid token", "message": "m"}))
    assert isinstance(err, HttpError)
    assert (err.status, err.message) == (403, "Invalid token")
    assert str(err) == "Figma API Error: Invalid token (403)"
    assert err.details["err"] == "Invalid token"

    assert error_from_response(response(400, {"message": "Bad key"})).message == "Bad key"
    assert error_from_response(response(502, b"<html>", "Bad Gateway")).message == "Bad Gateway"
    assert error_from_response(response(500, b"")).message == "HTTP 500"


def test_rate_limited_error_carries_reset():
    resp = TransportResponse(
        status=429,
        headers={"x-ratelimit-reset": "1700000000"},
        content=b'{"status": 429, "err": "Rate limit exceeded"}',
    )

    err = error_from_response(resp)

    assert isinstance(err, RateLimitedError)
    assert err.status == 429
    assert err.reset_at == 1_700_000_000.0


def test_invalid_json_body_raises_invalid_response():
    with pytest.raises(InvalidResponseError):
        TransportResponse(status=200, content=b"not json").json()


def test_placeholder_transport_serves_fixed_payloads():
    async def scenario():
        transport = PlaceholderTransport(quota=500)
        me = await transport.send(RequestTarget("GET", "https://api.figma.com/v1/me"))
        file = await transport.send(RequestTarget("GET", "https://api.figma.com/v1/files/xyz"))
        other = await transport.send(
            RequestTarget("GET", "https://api.figma.com/v1/files/xyz/comments")
        )
        return transport, me, file, other

    transport, me, file, other = run_async(scenario())
    assert isinstance(transport, Transport)
    assert transport.calls == 3
    assert me.json()["id"] == "demo"
    assert file.json()["name"] == "Demo Design File"
    assert file.header("x-ratelimit-remaining") == "500"
    assert other.status == 404
    assert error_from_response(other).message == "Not available in demo mode"

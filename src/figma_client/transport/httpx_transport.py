"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Network transport backed by `httpx.AsyncClient`.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..errors import NetworkError
from .base import RequestTarget, TransportResponse

logger = logging.getLogger("figma_client.transport.httpx")


class HttpxTransport:
    """
    Issue single HTTP calls; no retries, caching, or rate limiting here.

    Non-2xx answers are returned as responses. Only a missing response
    (DNS failure, connection reset, socket timeout) raises `NetworkError`.
    """

    def __init__(
        self,
        *,
        timeout_s: float | None = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if client is not None:
            self._client = client
            self._owns_client = False
            return
        client_kwargs: dict[str, Any] = {"timeout": timeout_s}
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)
        self._owns_client = True

    async def send(self, target: RequestTarget) -> TransportResponse:
        kwargs: dict[str, Any] = {"headers": target.headers}
        if target.body is not None:
            kwargs["json"] = target.body
        try:
            response = await self._client.request(target.method, target.url, **kwargs)
        except httpx.HTTPError as e:
            logger.debug("network failure %s %s: %s", target.method, target.url, e)
            raise NetworkError(
                f"Network error calling {target.url}: {str(e) or e.__class__.__name__}"
            ) from e

        return TransportResponse(
            status=response.status_code,
            headers={k.lower(): v for k, v in response.headers.items()},
            content=response.content,
            reason=response.reason_phrase,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

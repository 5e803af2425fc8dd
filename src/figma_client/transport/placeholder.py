"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Network-free transport serving fixed placeholder payloads (demo mode).
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlparse

from .base import RequestTarget, TransportResponse

_FILE_PATH_RE = re.compile(r"/files/([^/]+)$")
_ME_PATH_RE = re.compile(r"/me$")

PLACEHOLDER_QUOTA = 1000

PLACEHOLDER_USER: dict[str, Any] = {
    "id": "demo",
    "email": "demo@example.com",
    "handle": "Demo User",
    "img_url": "/placeholder.svg?height=40&width=40",
}


def _text(node_id: str, name: str, characters: str, **style: Any) -> dict[str, Any]:
    return {
        "id": node_id,
        "name": name,
        "type": "TEXT",
        "characters": characters,
        "style": {"fontFamily": "Inter", **style},
    }


def placeholder_file(last_modified: str | None = None) -> dict[str, Any]:
    """Fixed demo design file in the `GET /files/{key}` wire shape."""
    header = {
        "id": "2:1",
        "name": "Header Component",
        "type": "COMPONENT",
        "children": [
            {
                "id": "3:1",
                "name": "Logo",
                "type": "IMAGE",
                "absoluteBoundingBox": {"x": 0, "y": 0, "width": 120, "height": 40},
            },
            {
                "id": "3:2",
                "name": "Navigation",
                "type": "FRAME",
                "children": [
                    _text("4:1", "Home", "Home", fontSize=16),
                    _text("4:2", "About", "About", fontSize=16),
                ],
            },
        ],
    }
    hero = {
        "id": "2:2",
        "name": "Hero Section",
        "type": "FRAME",
        "children": [
            _text("5:1", "Hero Title", "Welcome to Our Platform", fontSize=48, fontWeight=700),
            _text(
                "5:2",
                "Hero Subtitle",
                "Build amazing products with our design system",
                fontSize=18,
            ),
            {
                "id": "5:3",
                "name": "CTA Button",
                "type": "COMPONENT",
                "children": [
                    _text("6:1", "Button Text", "Get Started", fontSize=16, fontWeight=600),
                ],
            },
        ],
    }
    return {
        "document": {
            "id": "0:0",
            "name": "Demo Design File",
            "type": "DOCUMENT",
            "children": [
                {"id": "1:1", "name": "Page 1", "type": "CANVAS", "children": [header, hero]}
            ],
        },
        "components": {
            "2:1": {
                "name": "Header Component",
                "type": "COMPONENT",
                "description": "Main navigation header",
            },
            "5:3": {
                "name": "CTA Button",
                "type": "COMPONENT",
                "description": "Primary call-to-action button",
            },
        },
        "componentSets": {},
        "schemaVersion": 1,
        "styles": {
            "S:1": {
                "name": "Primary Color",
                "styleType": "FILL",
                "type": "SOLID",
                "color": {"r": 0.2, "g": 0.4, "b": 1.0},
            },
            "S:2": {
                "name": "Heading Large",
                "styleType": "TEXT",
                "fontSize": 48,
                "fontFamily": "Inter",
                "fontWeight": 700,
            },
        },
        "name": "Demo Design File",
        "lastModified": last_modified or datetime.now(timezone.utc).isoformat(),
        "thumbnailUrl": "/placeholder.svg?height=200&width=300",
        "version": "1.0.0",
        "role": "owner",
        "editorType": "figma",
        "linkAccess": "view",
    }


class PlaceholderTransport:
    """
    Answer `/files/{key}` and `/me` locally with fixed data.

    Selected once at client construction when the credential fails the
    format check; the rest of the pipeline runs unchanged.
    """

    def __init__(
        self,
        *,
        now: Callable[[], datetime] | None = None,
        quota: int = PLACEHOLDER_QUOTA,
    ) -> None:
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._quota = quota
        self.calls = 0

    async def send(self, target: RequestTarget) -> TransportResponse:
        self.calls += 1
        path = urlparse(target.url).path.rstrip("/")
        if target.method.upper() == "GET" and _ME_PATH_RE.search(path):
            return self._json(200, PLACEHOLDER_USER)
        if target.method.upper() == "GET" and _FILE_PATH_RE.search(path):
            return self._json(200, placeholder_file(self._now().isoformat()))
        return self._json(
            404,
            {"status": 404, "err": "Not available in demo mode"},
            reason="Not Found",
        )

    async def aclose(self) -> None:
        return None

    def _json(self, status: int, payload: Any, *, reason: str = "OK") -> TransportResponse:
        # Report a full quota so the admission gate never closes in demo mode.
        reset = int(self._now().timestamp()) + 60
        return TransportResponse(
            status=status,
            headers={
                "content-type": "application/json",
                "x-ratelimit-remaining": str(self._quota),
                "x-ratelimit-reset": str(reset),
                "x-ratelimit-limit": str(self._quota),
            },
            content=json.dumps(payload).encode("utf-8"),
            reason=reason,
        )

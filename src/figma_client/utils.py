"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: utils.py.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal
from urllib.parse import unquote, urlparse

_API_KEY_RE = re.compile(r"^figd_[a-zA-Z0-9_-]+$")
_FILE_KEY_RE = re.compile(r"figma\.com/(?:file|proto|design)/([a-zA-Z0-9]+)")
_NODE_ID_RE = re.compile(r"node-id=([^&]+)")
_URL_PATTERNS: dict[str, re.Pattern[str]] = {
    kind: re.compile(
        rf"^https://(www\.)?figma\.com/{kind}/([a-zA-Z0-9]+)(/[^?]*)?(\?.*)?$"
    )
    for kind in ("file", "proto", "design")
}

UrlType = Literal["file", "proto", "design"]


@dataclass(frozen=True, slots=True)
class FigmaUrlValidation:
    """Result of checking one user-supplied Figma URL."""

    is_valid: bool
    file_id: str | None = None
    error: str | None = None
    url_type: UrlType | None = None


def backoff_delay(attempt: int, base_s: float) -> float:
    """Deterministic exponential delay for 1-based retry `attempt`."""
    return base_s * (2 ** max(attempt - 1, 0))


def validate_api_key_format(api_key: str | None) -> bool:
    """Structural check for personal access tokens (`figd_...`)."""
    if not isinstance(api_key, str):
        return False
    return bool(_API_KEY_RE.match(api_key))


def extract_file_key_from_url(url: str) -> str | None:
    match = _FILE_KEY_RE.search(url)
    return match.group(1) if match else None


def extract_node_id_from_url(url: str) -> str | None:
    match = _NODE_ID_RE.search(url)
    return unquote(match.group(1)) if match else None


def validate_figma_url(url: str | None) -> FigmaUrlValidation:
    """
    Validate a Figma file, prototype, or design URL.

    Returns the file id and URL type on success, or a human-readable error.
    """
    if not url or not isinstance(url, str):
        return FigmaUrlValidation(is_valid=False, error="URL is required")

    clean = url.strip()
    parsed = urlparse(clean)
    if not parsed.scheme or not parsed.netloc:
        return FigmaUrlValidation(is_valid=False, error="Invalid URL format")

    if "figma.com" not in clean:
        return FigmaUrlValidation(is_valid=False, error="URL must be from figma.com")

    for kind, pattern in _URL_PATTERNS.items():
        match = pattern.match(clean)
        if match and match.group(2):
            return FigmaUrlValidation(
                is_valid=True,
                file_id=match.group(2),
                url_type=kind,  # type: ignore[arg-type]
            )

    return FigmaUrlValidation(
        is_valid=False,
        error=(
            "Invalid Figma URL format. Please use a valid Figma file, "
            "prototype, or design URL."
        ),
    )

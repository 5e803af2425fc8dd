"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: transport/__init__.py.
"""

from .base import RequestTarget, Transport, TransportResponse, error_from_response
from .httpx_transport import HttpxTransport
from .placeholder import PLACEHOLDER_USER, PlaceholderTransport, placeholder_file

__all__ = [
    "RequestTarget",
    "Transport",
    "TransportResponse",
    "error_from_response",
    "HttpxTransport",
    "PlaceholderTransport",
    "PLACEHOLDER_USER",
    "placeholder_file",
]

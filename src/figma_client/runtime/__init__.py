"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/__init__.py.
"""

from .coalescing import RequestCoalescer
from .contracts import (
    CachePolicy,
    CoalescingPolicy,
    RateLimitPolicy,
    RetryPolicy,
    RuntimePolicies,
    TimeoutPolicy,
)
from .queue import QueuedRequest, RequestQueue
from .rate_limit import RateLimitGate, RateLimitState, parse_rate_limit_headers
from .retry import RetryController, SleepStrategy, classify_error, is_retryable
from .timeouts import CancellationSignal, race_with_signals, sleep_with_signals

__all__ = [
    "RequestCoalescer",
    "CachePolicy",
    "CoalescingPolicy",
    "RateLimitPolicy",
    "RetryPolicy",
    "RuntimePolicies",
    "TimeoutPolicy",
    "QueuedRequest",
    "RequestQueue",
    "RateLimitGate",
    "RateLimitState",
    "parse_rate_limit_headers",
    "RetryController",
    "SleepStrategy",
    "classify_error",
    "is_retryable",
    "CancellationSignal",
    "race_with_signals",
    "sleep_with_signals",
]

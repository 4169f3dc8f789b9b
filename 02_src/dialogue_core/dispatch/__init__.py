"""Dispatch module."""

from .queue import QueuedRequest, RequestQueue
from .rate_limiter import RateLimiter
from .scheduler import DispatchScheduler, InFlightRequest

__all__ = [
    "DispatchScheduler",
    "InFlightRequest",
    "QueuedRequest",
    "RateLimiter",
    "RequestQueue",
]

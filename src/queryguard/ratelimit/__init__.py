"""Rate limiting for tool invocations."""

from queryguard.ratelimit.limiter import SlidingWindowRateLimiter

__all__ = [
    "SlidingWindowRateLimiter",
]

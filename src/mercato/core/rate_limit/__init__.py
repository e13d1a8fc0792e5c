"""Rate limiting keyed by tenant, user and client IP.

Redis sliding window when ``REDIS_URL`` is set, in-process counters
otherwise.
"""

from mercato.core.rate_limit.backend import (
    FixedWindowRateLimiter,
    RateLimiter,
    RateLimitResult,
    SlidingWindowRateLimiter,
    build_rate_limiter,
)


__all__ = [
    "FixedWindowRateLimiter",
    "RateLimitResult",
    "RateLimiter",
    "SlidingWindowRateLimiter",
    "build_rate_limiter",
]

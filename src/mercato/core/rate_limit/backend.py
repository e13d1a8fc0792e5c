"""Rate limiting backends.

``SlidingWindowRateLimiter`` keeps one Redis sorted set per key, so the
limit holds across worker processes. ``FixedWindowRateLimiter`` counts in
process memory; it is what runs when no ``REDIS_URL`` is configured
(development, tests, single-process deployments).
"""

import math
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from mercato.config import Settings


logger = structlog.get_logger()

# In-memory counters are pruned once this many keys exist
MAX_MEMORY_KEYS = 10_000


@dataclass
class RateLimitResult:
    """Outcome of one rate limit check.

    Attributes:
        allowed: Whether the request may proceed
        limit: Requests allowed per window
        remaining: Requests left in the current window
        reset_time: Unix time at which the window resets
        retry_after: Seconds to wait, set only when denied
    """

    allowed: bool
    limit: int
    remaining: int
    reset_time: int
    retry_after: int | None = None


class RateLimiter(Protocol):
    async def is_allowed(
        self,
        identifier: str,
        limit: int,
        window: int,
        endpoint: str | None = None,
    ) -> RateLimitResult: ...

    async def close(self) -> None: ...


class _KeyedRateLimiter:
    def __init__(self, prefix: str = "ratelimit") -> None:
        self.prefix = prefix

    def _build_key(self, identifier: str, endpoint: str | None = None) -> str:
        key = f"{self.prefix}:{identifier}"
        if endpoint:
            key = f"{key}:{endpoint.strip('/').replace('/', '_')}"
        return key


class SlidingWindowRateLimiter(_KeyedRateLimiter):
    """Counts requests in the last ``window`` seconds with a Redis sorted set.

    If Redis cannot be reached the request is allowed and a warning is
    logged: losing the limiter must not take tenant data offline.
    """

    def __init__(self, client: "redis.Redis", prefix: str = "ratelimit") -> None:
        super().__init__(prefix)
        self.client = client

    async def is_allowed(
        self,
        identifier: str,
        limit: int,
        window: int,
        endpoint: str | None = None,
    ) -> RateLimitResult:
        key = self._build_key(identifier, endpoint)
        now = time.time()
        reset_time = int(now) + window

        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.zremrangebyscore(key, 0, now - window)
                pipe.zadd(key, {f"{now}:{uuid.uuid4().hex}": now})
                pipe.zcard(key)
                pipe.expire(key, window)
                results = await pipe.execute()
        except RedisError as exc:
            logger.warning("rate_limiter_unavailable", error_type=type(exc).__name__)
            return RateLimitResult(allowed=True, limit=limit, remaining=limit, reset_time=reset_time)

        count = int(results[2])
        if count > limit:
            return RateLimitResult(
                allowed=False,
                limit=limit,
                remaining=0,
                reset_time=reset_time,
                retry_after=window,
            )
        return RateLimitResult(
            allowed=True,
            limit=limit,
            remaining=limit - count,
            reset_time=reset_time,
        )

    async def close(self) -> None:
        await self.client.aclose()


class FixedWindowRateLimiter(_KeyedRateLimiter):
    """Counts requests per clock-aligned window in process memory."""

    def __init__(
        self,
        prefix: str = "ratelimit",
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(prefix)
        self._clock = clock
        # key -> (window reset time, requests counted)
        self._counters: dict[str, tuple[int, int]] = {}

    async def is_allowed(
        self,
        identifier: str,
        limit: int,
        window: int,
        endpoint: str | None = None,
    ) -> RateLimitResult:
        now = self._clock()
        reset_time = (int(now) // window + 1) * window
        key = self._build_key(identifier, endpoint)

        if len(self._counters) > MAX_MEMORY_KEYS:
            self._prune(now)

        counted_until, count = self._counters.get(key, (reset_time, 0))
        if counted_until != reset_time:
            count = 0

        if count >= limit:
            return RateLimitResult(
                allowed=False,
                limit=limit,
                remaining=0,
                reset_time=reset_time,
                retry_after=max(1, math.ceil(reset_time - now)),
            )

        self._counters[key] = (reset_time, count + 1)
        return RateLimitResult(
            allowed=True,
            limit=limit,
            remaining=limit - count - 1,
            reset_time=reset_time,
        )

    def _prune(self, now: float) -> None:
        expired = [key for key, (reset, _) in self._counters.items() if reset <= now]
        for key in expired:
            del self._counters[key]

    async def close(self) -> None:
        self._counters.clear()


def build_rate_limiter(settings: Settings) -> RateLimiter:
    """Create the limiter selected by ``settings.redis_url``."""
    if settings.redis_url is None:
        return FixedWindowRateLimiter()
    client = redis.Redis.from_url(
        str(settings.redis_url),
        max_connections=50,
        decode_responses=True,
    )
    return SlidingWindowRateLimiter(client)

import abc
import asyncio
import contextlib
import logging
import math
import time
import uuid
from dataclasses import dataclass
from typing import Callable

import redis.asyncio as aioredis

from portfolio_chat.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    retry_after: int
    limit: int
    source: str = "memory"

    def headers(self) -> dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.retry_after),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


@dataclass
class RateLimitEntry:
    window_start: float
    count: int = 0
    blocked: bool = False
    block_until: float = 0.0


class RateLimiter(abc.ABC):
    """Per-identifier admission control.

    ``admit`` never raises: implementations degrade to admitting the
    request when their backing store misbehaves.
    """

    source = "memory"

    def __init__(self, max_requests: int, window_seconds: int):
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    @abc.abstractmethod
    async def admit(self, identifier: str) -> RateLimitResult:
        ...

    def fail_open_result(self) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            remaining=self.max_requests,
            retry_after=self.window_seconds,
            limit=self.max_requests,
            source=f"{self.source}-error-fallback",
        )

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass


class InMemoryRateLimiter(RateLimiter):
    """Fixed-window counter with a longer lockout once the limit is breached.

    Process-local; counters are lost on restart and not shared between
    instances.
    """

    def __init__(
        self,
        max_requests: int = 15,
        window_seconds: int = 60,
        block_seconds: int = 120,
        cleanup_interval_seconds: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(max_requests, window_seconds)
        self.block_seconds = block_seconds
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._cleanup_task: asyncio.Task | None = None

    def __len__(self) -> int:
        return len(self._entries)

    def get_entry(self, identifier: str) -> RateLimitEntry | None:
        return self._entries.get(identifier)

    async def admit(self, identifier: str) -> RateLimitResult:
        try:
            return self.check(identifier)
        except Exception:
            logger.exception("In-memory rate limit check failed for %s", identifier)
            return self.fail_open_result()

    def check(self, identifier: str) -> RateLimitResult:
        now = self._clock()
        entry = self._entries.get(identifier)

        # A block outlives window resets
        if entry is not None and entry.blocked and now < entry.block_until:
            return RateLimitResult(
                allowed=False,
                remaining=0,
                retry_after=max(1, math.ceil(entry.block_until - now)),
                limit=self.max_requests,
            )

        if entry is None or now - entry.window_start > self.window_seconds:
            entry = RateLimitEntry(window_start=now)
            self._entries[identifier] = entry

        entry.count += 1
        entry.blocked = False

        if entry.count > self.max_requests:
            entry.blocked = True
            entry.block_until = now + self.block_seconds
            return RateLimitResult(
                allowed=False,
                remaining=0,
                retry_after=math.ceil(self.block_seconds),
                limit=self.max_requests,
            )

        return RateLimitResult(
            allowed=True,
            remaining=self.max_requests - entry.count,
            retry_after=max(0, math.ceil(self.window_seconds - (now - entry.window_start))),
            limit=self.max_requests,
        )

    def cleanup(self) -> int:
        """Drop entries older than two windows that are not serving a block."""
        now = self._clock()
        stale = [
            key
            for key, entry in self._entries.items()
            if now - entry.window_start > self.window_seconds * 2
            and not (entry.blocked and now < entry.block_until)
        ]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("Rate limiter sweep removed %d entries", len(stale))
        return len(stale)

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval_seconds)
            try:
                self.cleanup()
            except Exception:
                logger.exception("Rate limiter sweep failed")

    async def start(self) -> None:
        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def stop(self) -> None:
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._cleanup_task
            self._cleanup_task = None


class RedisRateLimiter(RateLimiter):
    """Sliding-window limiter shared by every instance through Redis."""

    source = "redis"

    # Atomic prune + count + record over a sorted set of request timestamps (ms).
    _SLIDING_WINDOW_SCRIPT = """
local key = KEYS[1]
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
local member = ARGV[4]

redis.call('ZREMRANGEBYSCORE', key, 0, now - window)
local count = redis.call('ZCARD', key)

if count >= limit then
  local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
  local reset = window
  if oldest[2] then
    reset = tonumber(oldest[2]) + window - now
  end
  return {0, 0, reset}
end

redis.call('ZADD', key, now, member)
redis.call('PEXPIRE', key, window)
local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
return {1, limit - count - 1, tonumber(oldest[2]) + window - now}
"""

    def __init__(
        self,
        client: aioredis.Redis,
        max_requests: int = 15,
        window_seconds: int = 60,
        prefix: str = "portfolio_chat",
    ):
        super().__init__(max_requests, window_seconds)
        self.client = client
        self.prefix = prefix
        self._script = client.register_script(self._SLIDING_WINDOW_SCRIPT)

    @classmethod
    def from_url(cls, redis_url: str, **kwargs) -> "RedisRateLimiter":
        client = aioredis.from_url(
            redis_url,
            decode_responses=True,
            socket_timeout=5.0,
            socket_connect_timeout=5.0,
        )
        return cls(client, **kwargs)

    async def admit(self, identifier: str) -> RateLimitResult:
        now_ms = int(time.time() * 1000)
        window_ms = self.window_seconds * 1000
        try:
            allowed, remaining, reset_ms = await self._script(
                keys=[f"{self.prefix}:{identifier}"],
                args=[now_ms, window_ms, self.max_requests, f"{now_ms}-{uuid.uuid4().hex}"],
            )
        except Exception:
            logger.warning(
                "Shared rate limit store failed for %s, admitting request",
                identifier,
                exc_info=True,
            )
            return self.fail_open_result()

        return RateLimitResult(
            allowed=bool(int(allowed)),
            remaining=max(0, int(remaining)),
            retry_after=max(1, math.ceil(int(reset_ms) / 1000)),
            limit=self.max_requests,
            source=self.source,
        )

    async def stop(self) -> None:
        await self.client.aclose()


def build_rate_limiter(settings: Settings) -> RateLimiter:
    """Pick the limiter implementation once, at startup."""
    if settings.redis_url:
        try:
            limiter = RedisRateLimiter.from_url(
                settings.redis_url,
                max_requests=settings.rate_limit_requests,
                window_seconds=settings.rate_limit_window_seconds,
                prefix=settings.rate_limit_prefix,
            )
        except Exception:
            logger.exception("Failed to initialise shared rate limit store")
        else:
            logger.info("Using Redis rate limiter")
            return limiter

    logger.warning("Shared rate limit store not configured, using in-memory rate limiting")
    return InMemoryRateLimiter(
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
        block_seconds=settings.rate_limit_block_seconds,
        cleanup_interval_seconds=settings.rate_limit_cleanup_interval_seconds,
    )

"""Tests for the in-memory and Redis-backed rate limiters."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from portfolio_chat.services.rate_limiter import (
    InMemoryRateLimiter,
    RateLimitResult,
    RedisRateLimiter,
    build_rate_limiter,
)
from tests.conftest import make_settings


def make_limiter(clock, **kwargs) -> InMemoryRateLimiter:
    options = {"max_requests": 15, "window_seconds": 60, "block_seconds": 120}
    options.update(kwargs)
    return InMemoryRateLimiter(clock=clock, **options)


# ---------------------------------------------------------------------------
# In-memory limiter
# ---------------------------------------------------------------------------


def test_requests_up_to_threshold_are_admitted(clock):
    limiter = make_limiter(clock)
    results = [limiter.check("ip:1.2.3.4") for _ in range(15)]
    assert all(r.allowed for r in results)
    assert [r.remaining for r in results] == list(range(14, -1, -1))


def test_request_over_threshold_is_denied_with_block_duration(clock):
    limiter = make_limiter(clock)
    for _ in range(15):
        limiter.check("ip:1.2.3.4")

    result = limiter.check("ip:1.2.3.4")
    assert not result.allowed
    assert result.remaining == 0
    assert result.retry_after == 120

    entry = limiter.get_entry("ip:1.2.3.4")
    assert entry.blocked
    assert entry.block_until == clock.now + 120


def test_block_outlives_window_reset(clock):
    limiter = make_limiter(clock)
    for _ in range(16):
        limiter.check("ip:1.2.3.4")

    clock.advance(61)  # window would have reset by now
    result = limiter.check("ip:1.2.3.4")
    assert not result.allowed
    assert result.retry_after == 59

    clock.advance(60)
    result = limiter.check("ip:1.2.3.4")
    assert result.allowed
    assert result.remaining == 14


def test_window_reset_restores_quota(clock):
    limiter = make_limiter(clock, max_requests=2)
    limiter.check("ip:a")
    limiter.check("ip:a")

    clock.advance(61)
    result = limiter.check("ip:a")
    assert result.allowed
    assert result.remaining == 1
    assert result.retry_after == 60


def test_identifiers_are_counted_independently(clock):
    limiter = make_limiter(clock, max_requests=1)
    assert limiter.check("ip:a").allowed
    assert not limiter.check("ip:a").allowed
    assert limiter.check("ip:b").allowed


def test_reset_seconds_count_down_within_window(clock):
    limiter = make_limiter(clock)
    limiter.check("ip:a")
    clock.advance(20)
    assert limiter.check("ip:a").retry_after == 40


def test_cleanup_removes_entries_older_than_two_windows(clock):
    limiter = make_limiter(clock)
    limiter.check("ip:old")
    clock.advance(100)
    limiter.check("ip:fresh")
    clock.advance(25)

    assert limiter.cleanup() == 1
    assert limiter.get_entry("ip:old") is None
    assert limiter.get_entry("ip:fresh") is not None


def test_cleanup_keeps_entries_still_blocked(clock):
    limiter = make_limiter(clock, max_requests=1, block_seconds=600)
    limiter.check("ip:a")
    limiter.check("ip:a")

    clock.advance(300)
    assert limiter.cleanup() == 0
    assert not limiter.check("ip:a").allowed


def test_headers_include_retry_after_only_when_denied():
    allowed = RateLimitResult(allowed=True, remaining=3, retry_after=42, limit=15)
    assert allowed.headers() == {
        "X-RateLimit-Limit": "15",
        "X-RateLimit-Remaining": "3",
        "X-RateLimit-Reset": "42",
    }

    denied = RateLimitResult(allowed=False, remaining=0, retry_after=120, limit=15)
    assert denied.headers()["Retry-After"] == "120"


@pytest.mark.asyncio
async def test_admit_fails_open_on_internal_error(clock):
    limiter = make_limiter(clock)
    with patch.object(limiter, "check", side_effect=RuntimeError("boom")):
        result = await limiter.admit("ip:a")
    assert result.allowed
    assert result.remaining == 15
    assert result.source == "memory-error-fallback"


@pytest.mark.asyncio
async def test_start_and_stop_manage_sweep_task(clock):
    limiter = make_limiter(clock)
    await limiter.start()
    assert limiter._cleanup_task is not None
    await limiter.stop()
    assert limiter._cleanup_task is None


# ---------------------------------------------------------------------------
# Redis limiter
# ---------------------------------------------------------------------------


def make_redis_limiter(script: AsyncMock) -> RedisRateLimiter:
    client = MagicMock()
    client.register_script.return_value = script
    client.aclose = AsyncMock()
    return RedisRateLimiter(client, max_requests=10, window_seconds=60, prefix="test")


@pytest.mark.asyncio
async def test_redis_admits_and_reports_remaining():
    script = AsyncMock(return_value=[1, 9, 60000])
    limiter = make_redis_limiter(script)

    result = await limiter.admit("ip:1.2.3.4")

    assert result.allowed
    assert result.remaining == 9
    assert result.retry_after == 60
    assert result.source == "redis"
    kwargs = script.await_args.kwargs
    assert kwargs["keys"] == ["test:ip:1.2.3.4"]
    assert kwargs["args"][1:3] == [60000, 10]


@pytest.mark.asyncio
async def test_redis_denial_rounds_retry_after_up():
    limiter = make_redis_limiter(AsyncMock(return_value=[0, 0, 30500]))
    result = await limiter.admit("ip:1.2.3.4")
    assert not result.allowed
    assert result.retry_after == 31


@pytest.mark.asyncio
async def test_redis_failure_fails_open():
    limiter = make_redis_limiter(AsyncMock(side_effect=RedisConnectionError("down")))
    result = await limiter.admit("ip:1.2.3.4")
    assert result.allowed
    assert result.remaining == 10
    assert result.source == "redis-error-fallback"


@pytest.mark.asyncio
async def test_redis_stop_closes_client():
    limiter = make_redis_limiter(AsyncMock())
    await limiter.stop()
    limiter.client.aclose.assert_awaited_once()


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def test_build_uses_memory_without_redis_url():
    limiter = build_rate_limiter(make_settings(rate_limit_requests=7))
    assert isinstance(limiter, InMemoryRateLimiter)
    assert limiter.max_requests == 7


def test_build_uses_redis_when_configured():
    limiter = build_rate_limiter(make_settings(redis_url="redis://localhost:6379/0"))
    assert isinstance(limiter, RedisRateLimiter)
    assert limiter.source == "redis"

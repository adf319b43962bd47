"""Tests for the Redis sliding window rate limiter."""

import time
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.api.core.constants import RateLimitKeys
from src.modules.tenancy.rate_limiting import RateLimiter


def make_redis(count: int, oldest: float | None = None) -> MagicMock:
    """Redis double whose pipeline reports ``count`` hits after this one."""
    pipe = MagicMock()
    oldest_hits = [("hit", oldest)] if oldest is not None else []
    pipe.execute = AsyncMock(return_value=[0, 1, count, oldest_hits, True])
    redis_client = MagicMock()
    redis_client.pipeline.return_value = pipe
    redis_client.zrem = AsyncMock(return_value=1)
    return redis_client


def test_lookup_key_format():
    assert (
        RateLimitKeys.organization_lookup("user@acme.com")
        == "rate_limit:lookup:email:user@acme.com"
    )


@pytest.mark.asyncio
async def test_hit_under_limit_is_allowed():
    redis_client = make_redis(count=3)

    result = await RateLimiter(redis_client, limit=5, window_seconds=900).hit("key")

    assert result.is_allowed
    assert result.current_count == 3
    assert result.retry_after == 0
    redis_client.zrem.assert_not_awaited()


@pytest.mark.asyncio
async def test_hit_at_limit_is_allowed():
    result = await RateLimiter(make_redis(count=5), limit=5, window_seconds=900).hit(
        "key"
    )

    assert result.is_allowed


@pytest.mark.asyncio
async def test_hit_over_limit_is_rejected_and_not_counted():
    redis_client = make_redis(count=6, oldest=time.time() - 100)

    result = await RateLimiter(redis_client, limit=5, window_seconds=900).hit("key")

    assert not result.is_allowed
    assert result.current_count == 5
    assert 795 <= result.retry_after <= 801
    redis_client.zrem.assert_awaited_once()


@pytest.mark.asyncio
async def test_retry_after_is_never_zero_for_a_rejected_hit():
    # Oldest hit is exactly on the window edge
    redis_client = make_redis(count=6, oldest=time.time() - 900)

    result = await RateLimiter(redis_client, limit=5, window_seconds=900).hit("key")

    assert not result.is_allowed
    assert result.retry_after >= 1


@pytest.mark.asyncio
async def test_hits_are_trimmed_to_the_window():
    redis_client = make_redis(count=1)

    await RateLimiter(redis_client, limit=5, window_seconds=900).hit("key")

    pipe = redis_client.pipeline.return_value
    _, start, end = pipe.zremrangebyscore.call_args.args
    assert start == "-inf"
    assert time.time() - 905 < end < time.time() - 895
    pipe.expire.assert_called_once_with("key", 900)


@pytest.mark.parametrize(
    "error", [RedisConnectionError("refused"), ConnectionRefusedError("refused")]
)
@pytest.mark.asyncio
async def test_redis_failure_fails_open(error):
    redis_client = MagicMock()
    redis_client.pipeline.side_effect = error

    result = await RateLimiter(redis_client, limit=5, window_seconds=900).hit("key")

    assert result.is_allowed
    assert result.retry_after == 0

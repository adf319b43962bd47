"""Per-email sliding window for organization lookups, kept in Redis."""

import math
import time
import uuid

import redis.asyncio as redis
from redis.exceptions import RedisError

from src.api.core.models.rate_limit import RateLimitResult
from src.utils.logger import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """Counts hits per key in a sorted set scored by hit time.

    Each limiter owns one window. A rejected hit is removed again, so a
    caller hammering the endpoint does not push its own window forward.
    """

    def __init__(self, redis_client: redis.Redis, limit: int, window_seconds: int):
        self.redis_client = redis_client
        self.limit = limit
        self.window_seconds = window_seconds

    def _result(self, key: str, allowed: bool, count: int, retry_after: int):
        return RateLimitResult(
            is_allowed=allowed,
            current_count=count,
            retry_after=retry_after,
            key=key,
            limit=self.limit,
            window_seconds=self.window_seconds,
        )

    async def hit(self, key: str) -> RateLimitResult:
        """Record one hit on ``key`` and report whether it fits the window.

        Redis errors are logged and the hit is allowed.
        """
        now = time.time()
        member = uuid.uuid4().hex
        try:
            pipe = self.redis_client.pipeline()
            pipe.zremrangebyscore(key, "-inf", now - self.window_seconds)
            pipe.zadd(key, {member: now})
            pipe.zcard(key)
            pipe.zrange(key, 0, 0, withscores=True)
            pipe.expire(key, self.window_seconds)
            _, _, count, oldest, _ = await pipe.execute()

            if count <= self.limit:
                return self._result(key, True, count, 0)

            await self.redis_client.zrem(key, member)
        except (RedisError, OSError) as e:
            logger.error(
                "Rate limiter unavailable, allowing request", key=key, error=str(e)
            )
            return self._result(key, True, 0, 0)

        # The oldest hit leaving the window frees the next slot
        retry_after = self.window_seconds
        if oldest:
            retry_after = math.ceil(oldest[0][1] + self.window_seconds - now)
        return self._result(
            key, False, count - 1, min(max(retry_after, 1), self.window_seconds)
        )

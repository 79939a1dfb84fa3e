"""
Fixed-window request counters in Redis.
"""
from redis.asyncio import Redis

from agro_auth.core.config import settings


def rate_limit_key(scope: str, *parts: str) -> str:
    return "rl:" + ":".join([scope, *(p or "-" for p in parts)])


async def allow(
    redis: Redis,
    scope: str,
    *parts: str,
    max_attempts: int,
    window_sec: int,
) -> bool:
    """
    Count one hit for `scope` + `parts` and report whether it is within
    `max_attempts` for the current window. The window starts at the first hit.
    """
    if not settings.RATE_LIMIT_ENABLED or window_sec <= 0:
        return True

    key = rate_limit_key(scope, *parts)
    # key and expiry are created together, so a counter can never outlive its window
    async with redis.pipeline(transaction=True) as pipe:
        pipe.set(key, 0, ex=window_sec, nx=True)
        pipe.incr(key)
        _, count = await pipe.execute()
    return count <= max_attempts


async def start_window(redis: Redis, scope: str, *parts: str, window_sec: int) -> None:
    """Open a fresh window for `scope` + `parts` that already counts one hit."""
    if not settings.RATE_LIMIT_ENABLED or window_sec <= 0:
        return
    await redis.set(rate_limit_key(scope, *parts), 1, ex=window_sec)

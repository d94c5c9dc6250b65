import redis.asyncio as aioredis
from app.config import get_settings

settings = get_settings()

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=100,
        )
    return _redis_pool


async def close_redis() -> None:
    global _redis_pool
    if _redis_pool:
        await _redis_pool.aclose()
        _redis_pool = None


# ---------------------------------------------------------------------------
# Cache helpers
# ---------------------------------------------------------------------------

async def cache_set(redis: aioredis.Redis, key: str, value: str, ttl: int) -> None:
    await redis.setex(key, ttl, value)


async def cache_get(redis: aioredis.Redis, key: str) -> str | None:
    return await redis.get(key)


# ---------------------------------------------------------------------------
# Run locks
# ---------------------------------------------------------------------------

async def acquire_lock(redis: aioredis.Redis, key: str, owner: str, ttl_ms: int) -> bool:
    """SET NX with expiry; True when this caller now holds the lock."""
    return bool(await redis.set(key, owner, nx=True, px=ttl_ms))


async def release_lock(redis: aioredis.Redis, key: str, owner: str) -> None:
    """Drop the lock only if it is still ours (it may have expired and been retaken)."""
    if await redis.get(key) == owner:
        await redis.delete(key)

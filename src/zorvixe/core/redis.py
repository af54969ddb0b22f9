"""
Redis Connection

Shared async Redis client. Redis backs the rate limiter on the public link
endpoints; the application keeps working without it (the limiter falls back to
process memory).
"""

from redis.asyncio import Redis, from_url

from zorvixe.core.config import settings

redis_client: Redis | None = None


async def init_redis() -> Redis:
    """Connect to Redis. Called from the application lifespan."""
    global redis_client
    client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    await client.ping()
    redis_client = client
    return redis_client


def get_redis_client() -> Redis | None:
    """Return the shared client, or None when Redis was never connected."""
    return redis_client


async def close_redis() -> None:
    """Close the Redis connection."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
